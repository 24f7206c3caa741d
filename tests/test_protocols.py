import pytest

from casgate.core.exceptions import ConfigurationError, UnsupportedVersion
from casgate.core.parsers import parse_cas1, parse_saml11, parse_service_response
from casgate.core.protocols import PROFILES, ProtocolVersion, resolve


@pytest.mark.parametrize(
    "version, path, method",
    [
        ("1.0", "/validate", "GET"),
        ("2.0", "/serviceValidate", "GET"),
        ("3.0", "/p3/serviceValidate", "GET"),
        ("saml1.1", "/samlValidate", "POST"),
    ],
)
def test_profile_table(version, path, method):
    profile = resolve(version)
    assert profile.version == ProtocolVersion(version)
    assert profile.path == path
    assert profile.method == method


def test_profiles_pick_their_parser():
    assert resolve("1.0").parse is parse_cas1
    assert resolve("2.0").parse is parse_service_response
    assert resolve("3.0").parse is parse_service_response
    assert resolve("saml1.1").parse is parse_saml11


def test_only_cas1_withholds_attributes():
    assert [p.version for p in PROFILES.values() if not p.releases_attributes] == [ProtocolVersion.CAS_1_0]


@pytest.mark.parametrize("alias", ["CAS3.0", "cas3.0", "CAS 3.0", " 3.0 ", ProtocolVersion.CAS_3_0])
def test_resolve_accepts_aliases(alias):
    assert resolve(alias) is PROFILES[ProtocolVersion.CAS_3_0]


def test_resolve_saml_alias():
    assert resolve("SAML1.1").version == ProtocolVersion.SAML_1_1


@pytest.mark.parametrize("version", ["4.0", "", "saml2", None, 3.0])
def test_resolve_rejects_unknown_versions(version):
    with pytest.raises(UnsupportedVersion) as excinfo:
        resolve(version)
    assert isinstance(excinfo.value, ConfigurationError)
