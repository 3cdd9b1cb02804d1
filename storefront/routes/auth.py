# storefront/routes/auth.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.errors import AuthenticationRequired, ValidationFailed
from storefront.models.users import Role, User
from storefront.schemas import user as schemas
from storefront.schemas.common import MessageResponse
from storefront.services.gate import authenticated
from storefront.utils.audit import client_ip, write_log
from storefront.utils.hashing import get_password_hash, verify_password
from storefront.utils.tokenJWT import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


def email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(User).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.query(query.exists()).scalar()


# Register a new account; self-registered users always get the "user" role
@router.post("/register", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, request: Request, db: Session = Depends(get_db)):
    if email_taken(db, payload.email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": "Email exists"})
        raise ValidationFailed.field("email", "The email has already been taken.")

    new_user = User(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        role=Role.USER,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth",
              ip=client_ip(request), meta={"email": new_user.email})

    return {"access_token": create_access_token(new_user), "user": new_user}


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.LoginRequest, request: Request, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(func.lower(User.email) == payload.email).first()

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        logger.info("Failed login for %s", payload.email)
        raise AuthenticationRequired("Invalid credentials.")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              ip=client_ip(request), meta={"email": db_user.email})

    return {"access_token": create_access_token(db_user), "user": db_user}


# Tokens are stateless; logging out only records the event, the client drops its token
@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, db: Session = Depends(get_db), current_user: User = Depends(authenticated)):
    write_log(db, user_id=current_user.id, action="LOGOUT", resource="auth", ip=client_ip(request))
    return {"message": "Logged out successfully"}


# Retrieve current authenticated user details
@router.get("/user", response_model=schemas.UserResponse)
def me(current_user: User = Depends(authenticated)):
    return {"data": current_user}


# Profile update by the account owner
@router.put("/user", response_model=schemas.UserSaved)
def update_me(
    payload: schemas.ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(authenticated),
):
    if email_taken(db, payload.email, exclude_id=current_user.id):
        raise ValidationFailed.field("email", "The email has already been taken.")

    current_user.name = payload.name
    current_user.email = payload.email
    if payload.password:
        current_user.password_hash = get_password_hash(payload.password)
    db.commit()
    db.refresh(current_user)

    write_log(db, user_id=current_user.id, action="PROFILE_UPDATE", resource="users",
              ip=client_ip(request), meta={"id": current_user.id})

    return {"message": "Profile updated successfully", "user": current_user}
