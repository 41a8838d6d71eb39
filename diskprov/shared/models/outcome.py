from typing import List, Union, Literal
from pydantic import BaseModel, Field

from .storage import DiskOutcome


class Success(BaseModel):
    result: Literal["ok"] = "ok"
    disks: List[DiskOutcome] = Field(default_factory=list)

    @property
    def created_count(self) -> int:
        return sum(1 for d in self.disks if d.status == "CREATED")


class Retry(BaseModel):
    result: Literal["retry"] = "retry"
    delay_seconds: int = Field(..., ge=0)
    reason: str

    @property
    def retry_interval(self) -> str:
        # Format the automation engine expects in ae_retry_interval
        return f"{int(self.delay_seconds)}.seconds"


class Fatal(BaseModel):
    result: Literal["error"] = "error"
    message: str


Outcome = Union[Success, Retry, Fatal]

class OutcomeEnvelope(BaseModel):
    # Wrapper used when an outcome travels over the wire
    request_id: str
    attempt: int = 1
    outcome: Outcome = Field(..., discriminator="result")
