"""
Windows Feature Manager - Install state of OS features via PowerShell.
"""
import asyncio

from repl_auditor.config import settings
from repl_auditor.logger import logger
from repl_auditor.services.errors import CreateError, DeleteError, ProbeError


def _quote(value: str) -> str:
    """PowerShell single-quoted literal."""
    return "'" + value.replace("'", "''") + "'"


class WindowsFeatureManager:
    """Drives the ServerManager *-WindowsFeature cmdlets on the local host."""

    def __init__(self, executable: str = None, timeout: float = 600):
        self.executable = executable or settings.POWERSHELL_EXE
        self.timeout = timeout

    async def _powershell(self, command: str) -> tuple[int, str, str]:
        process = await asyncio.create_subprocess_exec(
            self.executable,
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        finally:
            # Timed out here or cancelled by the caller
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
        return process.returncode, stdout.decode(errors="replace").strip(), stderr.decode(errors="replace").strip()

    async def install_feature(self, name: str) -> None:
        try:
            code, _, stderr = await self._powershell(f"Install-WindowsFeature -Name {_quote(name)} -ErrorAction Stop | Out-Null")
        except (OSError, asyncio.TimeoutError) as e:
            raise CreateError(f"Install-WindowsFeature {name} could not run: {e}", kind="host_feature") from e
        if code != 0:
            raise CreateError(f"Install-WindowsFeature {name} failed: {stderr}", kind="host_feature")
        logger.debug(f"Installed feature {name}")

    async def is_feature_installed(self, name: str) -> bool:
        try:
            code, stdout, stderr = await self._powershell(f"(Get-WindowsFeature -Name {_quote(name)}).Installed")
        except (OSError, asyncio.TimeoutError) as e:
            raise ProbeError(f"Get-WindowsFeature {name} could not run: {e}", kind="host_feature") from e
        if code != 0:
            raise ProbeError(f"Get-WindowsFeature {name} failed: {stderr}", kind="host_feature")
        return stdout.lower() == "true"

    async def uninstall_feature(self, name: str) -> None:
        try:
            code, _, stderr = await self._powershell(f"Uninstall-WindowsFeature -Name {_quote(name)} -ErrorAction Stop | Out-Null")
        except (OSError, asyncio.TimeoutError) as e:
            raise DeleteError(f"Uninstall-WindowsFeature {name} could not run: {e}", kind="host_feature") from e
        if code != 0:
            raise DeleteError(f"Uninstall-WindowsFeature {name} failed: {stderr}", kind="host_feature")
