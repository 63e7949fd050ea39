# examinator/utils/jwt_manager.py
import jwt

from examinator.errors import auth_error

ALGORITHM = "HS256"
FINISHER_PURPOSE = "finisher"


def _bearer(header_value):
    value = (header_value or "").strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value


# =====================================================
# ACCESS TOKEN (issued by the identity service)
# =====================================================
def verify_access_token(header_value, secret, now):
    """Return ``{"userId", "userType", "exp"}`` for a valid bearer credential."""
    token = _bearer(header_value)
    if not token or not secret:
        raise auth_error("Please provide a valid access token")
    try:
        claims = _decode_scoped(token, secret, now)
    except jwt.PyJWTError as exc:
        raise auth_error(
            "There has been a problem while authorizing your token.",
            tokenError=str(exc),
        )
    if not claims.get("userId") or not claims.get("userType"):
        raise auth_error("Access token is missing its subject")
    return {
        "userId": claims["userId"],
        "userType": claims["userType"],
        "exp": claims.get("exp"),
    }


# =====================================================
# EXAM TOKEN (scoped to one candidate in one exam)
# =====================================================
def _decode_scoped(token, secret, now, leeway=0):
    """Verify the signature, then check expiry against the service clock."""
    claims = jwt.decode(
        token, secret, algorithms=[ALGORITHM], options={"verify_exp": False}
    )
    exp = claims.get("exp")
    if exp is None:
        raise jwt.MissingRequiredClaimError("exp")
    if now > exp + leeway:
        raise jwt.ExpiredSignatureError("Signature has expired")
    return claims


def create_exam_token(exam_id, course_id, user_id, expires_at, secret):
    payload = {
        "examId": exam_id,
        "courseId": course_id,
        "userId": user_id,
        "exp": int(expires_at),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_exam_token(token, secret, now, leeway=0):
    if not token:
        raise auth_error("Please provide a valid exam token")
    try:
        claims = _decode_scoped(token, secret, now, leeway)
    except jwt.ExpiredSignatureError:
        raise auth_error("Exam token expired, the exam has ended")
    except jwt.PyJWTError as exc:
        raise auth_error(
            "There has been a problem while validating your exam token.",
            tokenError=str(exc),
        )
    if not all(claims.get(key) for key in ("examId", "courseId", "userId")):
        raise auth_error("Exam token is missing its scope")
    return {key: claims[key] for key in ("examId", "courseId", "userId")}


# =====================================================
# FINISHER TICKET (single grading run)
# =====================================================
def create_finisher_ticket(exam_id, course_id, expires_at, secret):
    payload = {
        "examId": exam_id,
        "courseId": course_id,
        "purpose": FINISHER_PURPOSE,
        "exp": int(expires_at),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_finisher_ticket(ticket, secret, now):
    if not ticket:
        raise auth_error("Missing finisher ticket")
    try:
        claims = _decode_scoped(ticket, secret, now)
    except jwt.ExpiredSignatureError:
        claims = jwt.decode(
            ticket, secret, algorithms=[ALGORITHM], options={"verify_exp": False}
        )
        raise auth_error(
            "Exam is already past its finish time",
            examId=claims.get("examId"),
            expiredSecondsAgo=int(now - claims["exp"]),
        )
    except jwt.PyJWTError as exc:
        raise auth_error("Invalid finisher ticket", tokenError=str(exc))
    if claims.get("purpose") != FINISHER_PURPOSE or not claims.get("examId"):
        raise auth_error("Invalid finisher ticket")
    return {"examId": claims["examId"], "courseId": claims.get("courseId")}
