from pydantic import BaseModel


class RepairRequest(BaseModel):
    dry_run: bool = False


class RepairResponse(BaseModel):
    group_id: str
    dry_run: bool
    triples: int
    drifted: int
    repaired: int
