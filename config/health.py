from __future__ import annotations

from typing import Any

from django.http import JsonResponse

from proximity_chat.presence import get_coordinator


def check_presence() -> dict[str, Any]:
    try:
        stats = get_coordinator().stats()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True, **stats}


def health(request):
    components = {"presence": check_presence()}

    all_ok = all(v.get("ok", False) for v in components.values())
    status = "ok" if all_ok else "down"
    http_status = 200 if all_ok else 503

    return JsonResponse(
        {"status": status, "components": components},
        status=http_status,
    )
