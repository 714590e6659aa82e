import logging

logger = logging.getLogger("auth")


def log_auth_event(action: str, request, user=None, status: str = "success", extra: dict | None = None):
    """Log ``auth_<action>`` with the client IP, outcome and, when known, the user.

    Failed outcomes are logged at WARNING so they survive INFO sampling.
    """
    context = {
        "action": action,
        "ip": request.META.get("REMOTE_ADDR"),
        "outcome": status,
    }
    if user is not None:
        context["user_id"] = user.id
    if extra:
        context.update(extra)
    level = logging.INFO if status == "success" else logging.WARNING
    logger.log(level, f"auth_{action}", extra=context)
