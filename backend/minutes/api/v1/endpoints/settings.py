from typing import Dict, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ....database import get_db
from ....services.settings_service import SettingsService

router = APIRouter()


@router.get("/settings")
async def get_settings(db: Session = Depends(get_db)):
    return SettingsService(db).get_all()


@router.post("/settings")
async def save_settings(values: Dict[str, Optional[str]], db: Session = Depends(get_db)):
    SettingsService(db).save(values)
    return {"message": "Settings saved successfully"}
