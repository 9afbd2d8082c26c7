from typing import Any, Dict

from app.common.pagination import Page
from app.rdq.domain.models import Rdq


def rdq_to_response(request: Rdq) -> Dict[str, Any]:
    return {
        "id": request.id,
        "title": request.title,
        "description": request.description,
        "type": request.type.value,
        "priority": request.priority.value,
        "status": request.status.value,
        "justification": request.justification,
        "manager_comment": request.manager_comment,
        "requested_date": request.requested_date.isoformat() if request.requested_date else None,
        "owner": {
            "id": request.owner.id,
            "email": request.owner.email,
            "name": request.owner.name,
            "role": request.owner.role.value,
        },
        "manager_id": request.owner.manager_id,
        "version": request.version,
        "created_at": request.created_at.isoformat() if request.created_at else None,
        "updated_at": request.updated_at.isoformat() if request.updated_at else None,
    }


def page_to_response(page: Page[Rdq]) -> Dict[str, Any]:
    return {
        "content": [rdq_to_response(request) for request in page.content],
        "totalElements": page.total_elements,
        "totalPages": page.total_pages,
        "number": page.number,
        "size": page.size,
        "first": page.first,
        "last": page.last,
        "numberOfElements": page.number_of_elements,
    }
