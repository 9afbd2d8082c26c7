from typing import Any, Dict

from app.identity.application.credentials import AuthResult
from app.identity.domain.models import UserAccount


def user_to_response(user: UserAccount) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "name": user.full_name,
        "role": user.role.value,
        "manager_id": user.manager_id,
        "active": user.active,
        "department": user.department,
        "phone_number": user.phone_number,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


def auth_result_to_response(result: AuthResult) -> Dict[str, Any]:
    return {
        "access_token": result.token,
        "token_type": "bearer",
        "expires_at": result.expires_at.isoformat(),
        "user": user_to_response(result.user),
    }
