def serialize_user(user, plan: str = None) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "plan": plan,
        "monthly_event_count": user.monthly_event_count or 0,
        "monthly_link_count": user.monthly_link_count or 0,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
