# storefront/routes/users.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.errors import Conflict, NotFound, ValidationFailed
from storefront.models.users import Role, User
from storefront.routes.auth import email_taken
from storefront.schemas import user as schemas
from storefront.schemas.common import MessageResponse
from storefront.services.gate import admin_only
from storefront.utils.audit import client_ip, write_log
from storefront.utils.hashing import get_password_hash

# Every route here is admin only
router = APIRouter(prefix="/users", tags=["Users"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def _is_last_admin(db: Session, user: User) -> bool:
    if user.role != Role.ADMIN:
        return False
    return db.query(User).filter(User.role == Role.ADMIN, User.id != user.id).count() == 0


# List users, optionally filtered by name/email and role
@router.get("", response_model=schemas.UserListResponse)
def list_users(
    q: Optional[str] = Query(None, description="Search by name or e-mail"),
    role: Optional[Role] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(User)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(User.email.ilike(like), User.name.ilike(like)))
    if role:
        query = query.filter(User.role == role)
    return {"data": query.order_by(User.id.asc()).all()}


@router.post("", response_model=schemas.UserSaved, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: schemas.UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if email_taken(db, payload.email):
        raise ValidationFailed.field("email", "The email has already been taken.")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        role=payload.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_CREATE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "role": user.role.value})

    return {"message": "User created successfully", "user": user}


@router.get("/{user_id}", response_model=schemas.UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return {"data": _get_user_or_404(db, user_id)}


@router.put("/{user_id}", response_model=schemas.UserSaved)
def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = _get_user_or_404(db, user_id)

    if email_taken(db, payload.email, exclude_id=user.id):
        raise ValidationFailed.field("email", "The email has already been taken.")

    # Demoting the only admin would lock everyone out of administration
    if payload.role != Role.ADMIN and _is_last_admin(db, user):
        raise Conflict("The last administrator cannot be demoted.")

    user.name = payload.name
    user.email = payload.email
    user.role = payload.role
    if payload.password:
        user.password_hash = get_password_hash(payload.password)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "role": user.role.value})

    return {"message": "User updated successfully", "user": user}


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = _get_user_or_404(db, user_id)

    # Prevent self-deletion; the caller is an admin, so this also keeps the last one
    if user.id == current_user.id:
        raise Conflict("You cannot delete your own account.")

    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"id": user_id, "email": email})

    return {"message": "User deleted successfully"}
