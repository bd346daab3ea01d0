# docbook/api/auth.py

from fastapi import APIRouter, Depends, status

from docbook.core.security import Principal, get_current_principal
from docbook.db.client import get_db
from docbook.models.schemas import AuthResponse, UserLoginModel, UserPublic, UserRegisterModel
from docbook.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user: UserRegisterModel, db=Depends(get_db)):
    result = AuthService(db).register(user.name, user.email, user.password, user.role)
    return {"message": "User registered successfully", **result}


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLoginModel, db=Depends(get_db)):
    result = AuthService(db).login(credentials.email, credentials.password)
    return {"message": "Logged in successfully", **result}


@router.get("/me", response_model=UserPublic)
def read_current_user(principal: Principal = Depends(get_current_principal), db=Depends(get_db)):
    return AuthService(db).get_current_user(principal.user_id)
