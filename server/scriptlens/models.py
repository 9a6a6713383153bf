from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class OutlineKind(str, Enum):
    CLASS = "Class"
    OBJECT_LITERAL = "ObjectLiteral"
    METHOD = "Method"
    CONSTRUCTOR = "Constructor"
    FUNCTION = "Function"
    GET = "Get"
    SET = "Set"


class OutlineToken(BaseModel):
    name: str
    kind: OutlineKind
    # Discovery order, starting at 1 and shared across the whole traversal.
    ordinal: int = Field(ge=1)
    # 0-based line of the construct's first token.
    line: int = Field(ge=0)
    # Number of enclosing structural containers (classes, functions, qualifying
    # object literals), not lexical brace depth.
    indent_amount: int = Field(default=0, ge=0, alias="indentAmount")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }


class DocumentUpdate(BaseModel):
    file_id: str
    text: str
    # Omit to bump the stored version by one.
    version: Optional[int] = None


class DocumentInfo(BaseModel):
    file_id: str
    version: int
    line_count: int = 0
    has_syntax_errors: bool = False


class OutlineResponse(BaseModel):
    file_id: str
    tokens: List[OutlineToken] = Field(default_factory=list)


class ReferencesRequest(BaseModel):
    file_id: str
    root_names: List[str] = Field(default_factory=list)


class ReferencesResponse(BaseModel):
    file_id: str
    # Members are sorted so responses are stable across runs.
    references: Dict[str, List[str]] = Field(default_factory=dict)
