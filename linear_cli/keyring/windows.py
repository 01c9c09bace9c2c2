"""Windows Credential Manager backend driven through PowerShell.

Each operation runs a short PowerShell script that calls CredReadW, CredWriteW
or CredDeleteW from advapi32. Secrets travel over stdin, never the command line.
"""
from typing import Optional

from ..errors import SecureStorageError
from .backend import target_name
from .process import run_command

POWERSHELL = "powershell.exe"

# Win32 ERROR_NOT_FOUND
ERROR_NOT_FOUND = 1168

UNAVAILABLE_HINT = (
    "PowerShell is required to access Windows Credential Manager.\n"
    "Alternatively, set the LINEAR_API_KEY environment variable."
)

_NATIVE = r'''
$ErrorActionPreference = "Stop"
Add-Type -TypeDefinition @"
using System;
using System.Runtime.InteropServices;
public static class LinearCliCred {
    [StructLayout(LayoutKind.Sequential, CharSet = CharSet.Unicode)]
    public struct CREDENTIAL {
        public int Flags;
        public int Type;
        public string TargetName;
        public string Comment;
        public System.Runtime.InteropServices.ComTypes.FILETIME LastWritten;
        public int CredentialBlobSize;
        public IntPtr CredentialBlob;
        public int Persist;
        public int AttributeCount;
        public IntPtr Attributes;
        public string TargetAlias;
        public string UserName;
    }
    [DllImport("advapi32.dll", CharSet = CharSet.Unicode, SetLastError = true)]
    public static extern bool CredReadW(string target, int type, int flags, out IntPtr credential);
    [DllImport("advapi32.dll", CharSet = CharSet.Unicode, SetLastError = true)]
    public static extern bool CredWriteW(ref CREDENTIAL credential, int flags);
    [DllImport("advapi32.dll", CharSet = CharSet.Unicode, SetLastError = true)]
    public static extern bool CredDeleteW(string target, int type, int flags);
    [DllImport("advapi32.dll")]
    public static extern void CredFree(IntPtr credential);
}
"@
$Marshal = [System.Runtime.InteropServices.Marshal]
'''

_GET = r'''
$ptr = [IntPtr]::Zero
if (-not [LinearCliCred]::CredReadW($target, 1, 0, [ref]$ptr)) {
    $err = $Marshal::GetLastWin32Error()
    if ($err -eq 1168) { exit 0 }
    [Console]::Error.WriteLine("CredReadW failed (error $err)")
    exit $err
}
try {
    $cred = $Marshal::PtrToStructure($ptr, [type][LinearCliCred+CREDENTIAL])
    if ($cred.CredentialBlobSize -gt 0) {
        [Console]::Out.Write($Marshal::PtrToStringUni($cred.CredentialBlob, $cred.CredentialBlobSize / 2))
    }
} finally {
    [LinearCliCred]::CredFree($ptr)
}
'''

_SET = r'''
$secret = [Console]::In.ReadToEnd()
$bytes = [System.Text.Encoding]::Unicode.GetBytes($secret)
$cred = New-Object LinearCliCred+CREDENTIAL
$cred.Type = 1
$cred.Persist = 2
$cred.TargetName = $target
$cred.UserName = $account
$cred.CredentialBlobSize = $bytes.Length
$cred.CredentialBlob = $Marshal::AllocHGlobal($bytes.Length)
try {
    $Marshal::Copy($bytes, 0, $cred.CredentialBlob, $bytes.Length)
    if (-not [LinearCliCred]::CredWriteW([ref]$cred, 0)) {
        $err = $Marshal::GetLastWin32Error()
        [Console]::Error.WriteLine("CredWriteW failed (error $err)")
        exit $err
    }
} finally {
    $Marshal::FreeHGlobal($cred.CredentialBlob)
}
'''

_DELETE = r'''
if (-not [LinearCliCred]::CredDeleteW($target, 1, 0)) {
    $err = $Marshal::GetLastWin32Error()
    if ($err -ne 1168) { [Console]::Error.WriteLine("CredDeleteW failed (error $err)") }
    exit $err
}
'''


def _ps_literal(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string."""
    return "'" + value.replace("'", "''") + "'"


def build_script(body: str, account: str) -> str:
    """Prefix an operation body with the native bindings and its variables."""
    return (
        _NATIVE
        + f"$account = {_ps_literal(account)}\n"
        + f"$target = {_ps_literal(target_name(account))}\n"
        + body
    )


class WindowsBackend:
    """Generic credentials with target name linear-cli:<account>."""

    def __init__(self, runner=run_command):
        self._run = runner

    def _powershell(self, body, account, input_text=None):
        return self._run(
            POWERSHELL,
            ["-NoProfile", "-NonInteractive", "-Command", build_script(body, account)],
            input_text=input_text,
            unavailable_hint=UNAVAILABLE_HINT,
        )

    def get(self, account: str) -> Optional[str]:
        result = self._powershell(_GET, account)
        if not result.success:
            raise SecureStorageError(
                f"CredReadW failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        # A missing credential produces no output
        return result.stdout or None

    def set(self, account: str, secret: str) -> None:
        result = self._powershell(_SET, account, input_text=secret)
        if not result.success:
            raise SecureStorageError(
                f"CredWriteW failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

    def delete(self, account: str) -> None:
        result = self._powershell(_DELETE, account)
        if not result.success and result.exit_code != ERROR_NOT_FOUND:
            raise SecureStorageError(
                f"CredDeleteW failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
