"""Tests for run-start capability probing."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from repl_auditor.services import capabilities as caps_module
from repl_auditor.services.capabilities import probe_capabilities


class TestProbeCapabilities:
    """probe_capabilities decides the directory and DNS gates."""

    @pytest.mark.asyncio
    async def test_all_available(self, gateway, run_config):
        with patch.object(caps_module.settings, "DNS_ENABLED", True):
            caps = await probe_capabilities(run_config, gateway)
        assert caps.directory and caps.dns and caps.host_feature

    @pytest.mark.asyncio
    async def test_directory_missing(self, gateway, directory, run_config):
        directory.available = False
        caps = await probe_capabilities(run_config, gateway)
        assert not caps.directory
        assert "no LDAP" in caps.directory_reason

    @pytest.mark.asyncio
    async def test_dns_unconfigured(self, gateway, run_config):
        config = run_config.model_copy(update={"dns_zone": ""})
        with patch.object(caps_module.settings, "DNS_ENABLED", True):
            caps = await probe_capabilities(config, gateway)
        assert caps.directory
        assert not caps.dns
        assert "not configured" in caps.dns_reason

    @pytest.mark.asyncio
    async def test_zone_not_served(self, gateway, dns_client, run_config):
        dns_client.zone_served = lambda zone, node: False
        with patch.object(caps_module.settings, "DNS_ENABLED", True):
            caps = await probe_capabilities(run_config, gateway)
        assert not caps.dns
        assert "corp.example.com" in caps.dns_reason

    @pytest.mark.asyncio
    async def test_dns_disabled(self, gateway, run_config):
        with patch.object(caps_module.settings, "DNS_ENABLED", False):
            caps = await probe_capabilities(run_config, gateway)
        assert not caps.dns
