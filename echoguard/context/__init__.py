"""Login-context trust tracking.

Fingerprints every signin, compares it with the user's known contexts and
escalates repeated unknown fingerprints to a block.
"""

from echoguard.context.engine import ContextTrustEngine
from echoguard.context.fingerprint import GeoLocator, NullGeoLocator, StaticGeoLocator, build_fingerprint
from echoguard.context.models import Classification, Context, Fingerprint, SuspiciousLogin, Verdict
from echoguard.context.store import ContextStore

__all__ = [
    "Classification",
    "Context",
    "ContextStore",
    "ContextTrustEngine",
    "Fingerprint",
    "GeoLocator",
    "NullGeoLocator",
    "StaticGeoLocator",
    "SuspiciousLogin",
    "Verdict",
    "build_fingerprint",
]
