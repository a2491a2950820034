"""
Registration endpoints: submit, list, fetch, status update, payment file
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response

from app.core.exceptions import StorageError
from app.core.validator import validate_submission
from app.services.file_intake import FileIntake
from app.services.registration_manager import RegistrationManager


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["registrations"])


def get_manager(request: Request) -> RegistrationManager:
    return request.app.state.manager


def get_intake(request: Request) -> FileIntake:
    return request.app.state.intake


@router.post("/register", status_code=201)
async def register(
    request: Request,
    team_name: Optional[str] = Form(None, alias="teamName"),
    team_size: Optional[str] = Form(None, alias="teamSize"),
    participants: Optional[str] = Form(None),
    portfolio_url: Optional[str] = Form(None, alias="portfolioUrl"),
    payment_screenshot: Optional[UploadFile] = File(None, alias="paymentScreenshot"),
    manager: RegistrationManager = Depends(get_manager),
    intake: FileIntake = Depends(get_intake),
):
    """
    Submit a team registration (multipart/form-data)

    Fields:
        teamName, teamSize (1-3), participants (JSON array string),
        portfolioUrl, paymentScreenshot (image or PDF, max 5MB)

    Response (201):
        {
            "success": true,
            "registrationId": "REG-0001",
            "data": {"teamName", "teamSize", "entryFee", "registrationDate"}
        }
    """
    # File type and size are checked before any field validation
    received = None
    if payment_screenshot is not None and payment_screenshot.filename:
        received = await intake.receive(payment_screenshot)

    submission = validate_submission(
        team_name,
        team_size,
        participants,
        portfolio_url,
        received,
        require_participant_links=request.app.state.settings.registration.require_participant_links,
    )

    reference = intake.store(received)
    try:
        registration = await manager.create(submission, reference)
    except StorageError:
        intake.discard(reference)
        raise

    return {
        "success": True,
        "message": "Registration submitted successfully!",
        "registrationId": registration["id"],
        "data": {
            "teamName": registration["teamName"],
            "teamSize": registration["teamSize"],
            "entryFee": registration["entryFee"],
            "registrationDate": registration["registrationDate"]
        }
    }


@router.get("/registrations")
async def list_registrations(manager: RegistrationManager = Depends(get_manager)):
    """All registrations (admin view)"""
    registrations = await manager.get_all()
    return {
        "success": True,
        "count": len(registrations),
        "registrations": registrations
    }


@router.get("/registrations/{registration_id}")
async def get_registration(registration_id: str, manager: RegistrationManager = Depends(get_manager)):
    registration = await manager.get_by_id(registration_id)
    return {
        "success": True,
        "registration": registration
    }


@router.patch("/registrations/{registration_id}/status")
async def update_registration_status(
    registration_id: str,
    payload: dict,
    manager: RegistrationManager = Depends(get_manager),
):
    """
    Update a registration's status

    Request:
        {"status": "approved"}   # pending | approved | rejected
    """
    registration = await manager.update_status(registration_id, payload.get("status"))
    return {
        "success": True,
        "message": "Registration status updated",
        "registration": registration
    }


@router.get("/registrations/{registration_id}/payment")
async def get_payment_screenshot(registration_id: str, manager: RegistrationManager = Depends(get_manager)):
    """Raw payment screenshot bytes (inline upload mode only)"""
    data, content_type = await manager.fetch_payment_attachment(registration_id)
    return Response(content=data, media_type=content_type)
