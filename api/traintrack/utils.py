import hashlib, json
from itsdangerous import BadSignature, URLSafeSerializer
from .config import SECRET_KEY
from .errors import CertificateNotFound

def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()

def canonical_json(obj) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))

def make_token(payload: dict) -> str:
    s = URLSafeSerializer(SECRET_KEY, salt="certificate-download")
    return s.dumps(payload)

def read_token(token: str) -> dict:
    s = URLSafeSerializer(SECRET_KEY, salt="certificate-download")
    try:
        return s.loads(token)
    except BadSignature as exc:
        # a tampered link looks the same as a missing certificate
        raise CertificateNotFound("unknown download link") from exc
