"""Tests for deriving the fixture set of a run."""

from __future__ import annotations

import pytest

from conftest import BASE_DN
from repl_auditor.schemas.fixture import FixtureKind
from repl_auditor.services.capabilities import Capabilities
from repl_auditor.services.errors import ConfigurationError
from repl_auditor.services.fixture_catalog import build_catalog, domain_from_dn, policy_guid


class TestBuildCatalog:
    """Tests for build_catalog."""

    def test_full_scope_order(self, run_config, full_caps):
        """All six kinds, directory objects first, feature last."""
        fixtures = build_catalog(run_config, BASE_DN, full_caps)
        assert [f.kind for f in fixtures] == [
            FixtureKind.ORGANIZATIONAL_UNIT,
            FixtureKind.GROUP,
            FixtureKind.COMPUTER,
            FixtureKind.POLICY_OBJECT,
            FixtureKind.DNS_RECORD,
            FixtureKind.HOST_FEATURE,
        ]

    def test_identities(self, run_config, full_caps):
        """Group and computer live inside the test OU."""
        by_kind = {f.kind: f for f in build_catalog(run_config, BASE_DN, full_caps)}
        ou_dn = f"OU=ReplCheckOU,{BASE_DN}"
        assert by_kind[FixtureKind.ORGANIZATIONAL_UNIT].identity == ou_dn
        assert by_kind[FixtureKind.GROUP].identity == f"CN=ReplCheckGroup,{ou_dn}"
        assert by_kind[FixtureKind.COMPUTER].identity == f"CN=REPLCHECKPC,{ou_dn}"
        assert by_kind[FixtureKind.DNS_RECORD].identity == "replcheck.corp.example.com"
        assert by_kind[FixtureKind.HOST_FEATURE].identity == "Telnet-Client"

    def test_policy_identity_known_before_creation(self, run_config, full_caps):
        """The policy container DN is derived from its name alone."""
        first = build_catalog(run_config, BASE_DN, full_caps)
        second = build_catalog(run_config, BASE_DN, full_caps)
        gpo = [f for f in first if f.kind == FixtureKind.POLICY_OBJECT][0]
        assert gpo.identity == [f for f in second if f.kind == FixtureKind.POLICY_OBJECT][0].identity
        assert gpo.identity.startswith(f"CN={policy_guid('ReplCheckGPO', BASE_DN)},CN=Policies,CN=System,")
        assert gpo.attributes["file_sys_path"].startswith("\\\\corp.example.com\\SysVol\\")

    def test_dns_excluded_without_capability(self, run_config, no_dns_caps):
        """No DNS fixture when the DNS gate is closed."""
        kinds = [f.kind for f in build_catalog(run_config, BASE_DN, no_dns_caps)]
        assert FixtureKind.DNS_RECORD not in kinds

    def test_dns_options_optional_without_capability(self, run_config, no_dns_caps):
        """Missing DNS options are fine when DNS is out of scope."""
        config = run_config.model_copy(update={"dns_hostname": "", "dns_ip": "", "dns_zone": ""})
        assert len(build_catalog(config, BASE_DN, no_dns_caps)) == 5

    def test_missing_dns_option_with_capability(self, run_config, full_caps):
        """DNS in scope requires every DNS option."""
        config = run_config.model_copy(update={"dns_zone": ""})
        with pytest.raises(ConfigurationError, match="dns_zone"):
            build_catalog(config, BASE_DN, full_caps)

    @pytest.mark.parametrize("option", ["ou_name", "group_name", "computer_name", "gpo_name"])
    def test_missing_directory_identity(self, run_config, full_caps, option):
        """Directory identities are always required."""
        config = run_config.model_copy(update={option: ""})
        with pytest.raises(ConfigurationError, match=option):
            build_catalog(config, BASE_DN, full_caps)

    def test_missing_feature_name(self, run_config, full_caps):
        config = run_config.model_copy(update={"feature_name": ""})
        with pytest.raises(ConfigurationError, match="feature_name"):
            build_catalog(config, BASE_DN, full_caps)

    def test_feature_out_of_scope(self, run_config):
        caps = Capabilities(directory=True, dns=True, host_feature=False)
        kinds = [f.kind for f in build_catalog(run_config, BASE_DN, caps)]
        assert FixtureKind.HOST_FEATURE not in kinds

    def test_special_characters_escaped(self, run_config, full_caps):
        """Commas in names cannot split the DN."""
        config = run_config.model_copy(update={"ou_name": "Repl,Check"})
        ou = build_catalog(config, BASE_DN, full_caps)[0]
        assert ou.identity == f"OU=Repl\\,Check,{BASE_DN}"

    def test_empty_naming_context(self, run_config, full_caps):
        with pytest.raises(ConfigurationError):
            build_catalog(run_config, "", full_caps)


class TestHelpers:
    """Tests for DN helpers."""

    def test_domain_from_dn(self):
        assert domain_from_dn(BASE_DN) == "corp.example.com"

    def test_policy_guid_format(self):
        guid = policy_guid("ReplCheckGPO", BASE_DN)
        assert guid.startswith("{") and guid.endswith("}")
        assert guid == guid.upper()
        assert guid != policy_guid("OtherGPO", BASE_DN)
