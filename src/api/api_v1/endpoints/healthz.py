from fastapi import APIRouter, status
from pydantic import BaseModel

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = "ok"


@router.get("/", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
def health_check():
    return HealthCheckResponse()
