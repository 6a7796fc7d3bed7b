"""Signed upload parameters for poster, banner and seat map images"""
from fastapi import APIRouter, Depends

from seatmarket.api.deps import get_current_user
from seatmarket.models import User
from seatmarket.schemas import UploadSignRequest, UploadSignResponse
from seatmarket.services.upload_service import sign_upload_params

router = APIRouter()


@router.post("/uploads/sign", response_model=UploadSignResponse)
async def sign_upload(data: UploadSignRequest, user: User = Depends(get_current_user)):
    return UploadSignResponse(**sign_upload_params(user, data.params))
