from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Union

from ..models import Outcome
from .exceptions import UnsupportedVersion
from .parsers import parse_cas1, parse_cas2, parse_cas3, parse_saml11


class ProtocolVersion(str, Enum):
    CAS_1_0 = "1.0"
    CAS_2_0 = "2.0"
    CAS_3_0 = "3.0"
    SAML_1_1 = "saml1.1"


@dataclass(frozen=True)
class Profile:
    version: ProtocolVersion
    path: str
    method: str
    parse: Callable[[str], Outcome]
    releases_attributes: bool


PROFILES: Dict[ProtocolVersion, Profile] = {
    ProtocolVersion.CAS_1_0: Profile(ProtocolVersion.CAS_1_0, "/validate", "GET", parse_cas1, False),
    ProtocolVersion.CAS_2_0: Profile(ProtocolVersion.CAS_2_0, "/serviceValidate", "GET", parse_cas2, True),
    ProtocolVersion.CAS_3_0: Profile(ProtocolVersion.CAS_3_0, "/p3/serviceValidate", "GET", parse_cas3, True),
    ProtocolVersion.SAML_1_1: Profile(ProtocolVersion.SAML_1_1, "/samlValidate", "POST", parse_saml11, True),
}


def to_version(version: Union[str, ProtocolVersion]) -> ProtocolVersion:
    """
    Accept "3.0", "CAS3.0", "cas 3.0", "saml1.1", "SAML1.1" or a ProtocolVersion.
    """
    if isinstance(version, ProtocolVersion):
        return version
    if not isinstance(version, str):
        raise UnsupportedVersion(version)

    key = version.strip().lower().replace(" ", "")
    if key.startswith("cas"):
        key = key[3:]
    try:
        return ProtocolVersion(key)
    except ValueError:
        raise UnsupportedVersion(version) from None


def resolve(version: Union[str, ProtocolVersion]) -> Profile:
    return PROFILES[to_version(version)]
