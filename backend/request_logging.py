import json
import uuid

from fastapi import Request


def get_request_id(request: Request) -> str:
    # Honour an upstream id so log lines can be correlated across services
    rid = request.headers.get("x-request-id")
    if rid and len(rid) <= 128:
        return rid
    return uuid.uuid4().hex


def get_client_ip(request: Request) -> str:
    # Load balancers add X-Forwarded-For; take the first hop
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def structured_log_line(payload: dict) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
