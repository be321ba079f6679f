from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.app.schemas.mediation import MediationRequest, MediationResponse
from backend.app.services.mediation_service import GigaChatMediator, get_mediator, mediate_or_fallback

router = APIRouter()

@router.post("/mediate", response_model=MediationResponse)
def mediate_route(request: MediationRequest, mediator: GigaChatMediator = Depends(get_mediator)):
    """
    Get an AI mediation recommendation for two messages without storing anything.
    
    - Returns the recommendation and a keyword-based emotion analysis
    - On provider failure returns 500 with `error` and a fallback recommendation
    """
    result = mediate_or_fallback(mediator, request.partner1_message, request.partner2_message)
    if "error" in result:
        return JSONResponse(status_code=500, content=result)
    return result
