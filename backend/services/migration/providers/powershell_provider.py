"""
Exchange mailbox mover backed by PowerShell.
Runs Exchange Management Shell / Exchange Online cmdlets and reads their JSON output.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from core.config import settings
from core.logging import get_logger
from ..exceptions import MailboxMoverError
from .base import BaseMailboxMover, ConnectionStatus, MailboxLookup, MoveResult, MoveStatus

logger = get_logger("migration.powershell")


LOOKUP_SCRIPT = """
$mailbox = Get-Mailbox -Identity {identity} -ErrorAction Stop
$stats = Get-MailboxStatistics -Identity {identity} -ErrorAction Stop
$sizeInMB = 0
if ($stats.TotalItemSize) {{
  $sizeString = $stats.TotalItemSize.ToString()
  if ($sizeString -match '\\(([\\d,]+) bytes\\)') {{
    $sizeInMB = [double]($matches[1] -replace ',','') / 1MB
  }}
}}
@{{
  Exists = $true
  Size = [math]::Round($sizeInMB, 2)
  ItemCount = $stats.ItemCount
  Database = [string]$mailbox.Database
}} | ConvertTo-Json
"""

MOVE_SCRIPT = """
$moveRequest = New-MoveRequest -Identity {source} -Remote -RemoteHostName {domain} `
  -TargetDeliveryDomain {domain} -BadItemLimit 50 -AcceptLargeDataLoss -ErrorAction Stop
@{{
  Success = $true
  MoveRequestId = [string]$moveRequest.Identity
}} | ConvertTo-Json
"""

MOVE_STATUS_SCRIPT = """
$stats = Get-MoveRequestStatistics -Identity {move_request_id} -ErrorAction Stop
@{{
  Status = [string]$stats.Status
  PercentComplete = $stats.PercentComplete
  BytesTransferred = $stats.BytesTransferred.ToBytes()
}} | ConvertTo-Json
"""

CONNECTION_SCRIPT = """
$session = Get-PSSession | Where-Object { $_.ConfigurationName -eq 'Microsoft.Exchange' }
if ($session) {
  Write-Output ("Connected|" + (Get-Command Get-Mailbox).Version)
} else {
  Write-Output "Not connected"
}
"""


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal"""
    return "'" + value.replace("'", "''") + "'"


class PowerShellMailboxMover(BaseMailboxMover):
    """Moves mailboxes by shelling out to PowerShell"""

    name = "powershell"

    def __init__(self, executable: Optional[str] = None, timeout: Optional[float] = None):
        self.executable = executable or settings.POWERSHELL_EXECUTABLE
        self.timeout = timeout or settings.POWERSHELL_TIMEOUT_SECONDS

    def _command(self, script: str) -> List[str]:
        return [self.executable, "-NoProfile", "-NonInteractive", "-Command", script]

    async def run_script(self, script: str) -> str:
        """Run a script and return its stdout; raises MailboxMoverError on any failure"""
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command(script),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise MailboxMoverError(f"PowerShell not installed: {self.executable}")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise MailboxMoverError(f"PowerShell command timed out after {self.timeout:g}s")

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise MailboxMoverError(f"PowerShell execution failed: {message or process.returncode}")

        return stdout.decode("utf-8", errors="replace").strip()

    async def run_json(self, script: str) -> Dict[str, Any]:
        output = await self.run_script(script)
        try:
            return json.loads(output)
        except json.JSONDecodeError:
            raise MailboxMoverError(f"Unexpected PowerShell output: {output[:200]}")

    async def test_connection(self) -> ConnectionStatus:
        try:
            output = await self.run_script(CONNECTION_SCRIPT)
        except MailboxMoverError as e:
            return ConnectionStatus(success=False, message=f"Connection test failed: {e}")

        if output.startswith("Connected"):
            version = output.split("|", 1)[1].strip() if "|" in output else None
            return ConnectionStatus(success=True, message="Connected to Exchange", version=version)

        return ConnectionStatus(
            success=False,
            message="No active Exchange session found. Please run Connect-ExchangeOnline first.",
        )

    async def lookup(self, identity: str) -> MailboxLookup:
        try:
            data = await self.run_json(LOOKUP_SCRIPT.format(identity=ps_quote(identity)))
        except MailboxMoverError as e:
            logger.info(f"Mailbox lookup failed for {identity}: {e}")
            return MailboxLookup(exists=False, error=str(e))

        return MailboxLookup(
            exists=bool(data.get("Exists")),
            size_mb=float(data.get("Size") or 0),
            item_count=data.get("ItemCount"),
            database=data.get("Database"),
        )

    async def move(self, source_identity: str, target_identity: str) -> MoveResult:
        domain = target_identity.split("@")[-1]
        try:
            data = await self.run_json(
                MOVE_SCRIPT.format(source=ps_quote(source_identity), domain=ps_quote(domain))
            )
        except MailboxMoverError as e:
            return MoveResult(success=False, error=str(e))

        move_request_id = data.get("MoveRequestId")
        result = MoveResult(success=bool(data.get("Success")), move_request_id=move_request_id)
        if result.success and move_request_id:
            status = await self.get_move_status(move_request_id)
            if status.bytes_transferred:
                result.data_moved_mb = status.bytes_transferred / (1024 * 1024)
        return result

    async def get_move_status(self, move_request_id: str) -> MoveStatus:
        try:
            data = await self.run_json(
                MOVE_STATUS_SCRIPT.format(move_request_id=ps_quote(move_request_id))
            )
        except MailboxMoverError as e:
            return MoveStatus(status="Failed", percent_complete=0, error=str(e))

        return MoveStatus(
            status=data.get("Status") or "Unknown",
            percent_complete=int(data.get("PercentComplete") or 0),
            bytes_transferred=data.get("BytesTransferred"),
        )

    async def close(self):
        try:
            await self.run_script("Disconnect-ExchangeOnline -Confirm:$false")
        except MailboxMoverError as e:
            logger.warning(f"Exchange disconnect failed: {e}")
