"""PowerShell scripts run out of process by the registry adapters.

All scripts share one line protocol on stdout. Arguments and values are
base64-encoded UTF-8 so names, versions and messages survive any console
encoding:

    MFPS::ITEM::<name>::<version>::<repository>::<guid>
    MFPS::ERROR::<message>

Exit code 3 means the PowerShell module providing the command is missing.
"""

from __future__ import annotations

__all__ = [
    "FIND_MODULE",
    "FIND_PSRESOURCE",
    "INSTALLED_MODULES",
    "REGISTER_PSREPOSITORY",
    "REGISTER_PSRESOURCE_REPOSITORY",
]

_PRELUDE = r"""
$ErrorActionPreference = 'Stop'
$ProgressPreference = 'SilentlyContinue'

function Decode-Lines([string]$b64) {
    if ([string]::IsNullOrWhiteSpace($b64)) { return @() }
    $text = [System.Text.Encoding]::UTF8.GetString([System.Convert]::FromBase64String($b64))
    return @($text -split "`n" | Where-Object { $_ -ne '' })
}

function Encode([object]$value) {
    if ($null -eq $value) { return '' }
    return [System.Convert]::ToBase64String([System.Text.Encoding]::UTF8.GetBytes([string]$value))
}

function Write-Item($name, $version, $repository, $guid) {
    Write-Output ('MFPS::ITEM::{0}::{1}::{2}::{3}' -f (Encode $name), (Encode $version), (Encode $repository), (Encode $guid))
}

function Write-Failure($message) {
    Write-Output ('MFPS::ERROR::{0}' -f (Encode $message))
}
"""

FIND_PSRESOURCE = (
    r"""
param([string]$NamesB64, [string]$ReposB64, [string]$Prerelease)
"""
    + _PRELUDE
    + r"""
if (-not (Get-Module -ListAvailable -Name Microsoft.PowerShell.PSResourceGet)) { exit 3 }
Import-Module Microsoft.PowerShell.PSResourceGet

$params = @{ Name = (Decode-Lines $NamesB64); Version = '*' }
$repos = Decode-Lines $ReposB64
if ($repos.Count -gt 0) { $params.Repository = $repos }
if ($Prerelease -eq '1') { $params.Prerelease = $true }

try {
    foreach ($item in Find-PSResource @params) {
        $version = [string]$item.Version
        if ($item.Prerelease) { $version = "$version-$($item.Prerelease)" }
        $guid = $null
        if ($item.AdditionalMetadata -and $item.AdditionalMetadata.ContainsKey('GUID')) {
            $guid = $item.AdditionalMetadata['GUID']
        }
        Write-Item $item.Name $version $item.Repository $guid
    }
} catch {
    Write-Failure $_.Exception.Message
    exit 1
}
exit 0
"""
)

FIND_MODULE = (
    r"""
param([string]$NamesB64, [string]$ReposB64, [string]$Prerelease)
"""
    + _PRELUDE
    + r"""
if (-not (Get-Module -ListAvailable -Name PowerShellGet)) { exit 3 }
Import-Module PowerShellGet

$params = @{ Name = (Decode-Lines $NamesB64); AllVersions = $true }
$repos = Decode-Lines $ReposB64
if ($repos.Count -gt 0) { $params.Repository = $repos }
if ($Prerelease -eq '1') { $params.AllowPrerelease = $true }

try {
    foreach ($item in Find-Module @params) {
        $guid = $null
        if ($item.AdditionalMetadata) { $guid = $item.AdditionalMetadata.GUID }
        Write-Item $item.Name ([string]$item.Version) $item.Repository $guid
    }
} catch {
    Write-Failure $_.Exception.Message
    exit 1
}
exit 0
"""
)

REGISTER_PSRESOURCE_REPOSITORY = (
    _PRELUDE
    + r"""
if (-not (Get-Module -ListAvailable -Name Microsoft.PowerShell.PSResourceGet)) { exit 3 }
Import-Module Microsoft.PowerShell.PSResourceGet
try {
    Register-PSResourceRepository -PSGallery -Trusted
} catch {
    Write-Failure $_.Exception.Message
    exit 1
}
exit 0
"""
)

REGISTER_PSREPOSITORY = (
    _PRELUDE
    + r"""
if (-not (Get-Module -ListAvailable -Name PowerShellGet)) { exit 3 }
Import-Module PowerShellGet
try {
    Register-PSRepository -Default
} catch {
    Write-Failure $_.Exception.Message
    exit 1
}
exit 0
"""
)

INSTALLED_MODULES = (
    r"""
param([string]$NamesB64)
"""
    + _PRELUDE
    + r"""
foreach ($name in (Decode-Lines $NamesB64)) {
    $best = Get-Module -ListAvailable -Name $name -ErrorAction SilentlyContinue |
        Sort-Object -Property Version -Descending |
        Select-Object -First 1
    if ($null -eq $best) { continue }
    $version = [string]$best.Version
    $pre = $null
    if ($best.PrivateData -and $best.PrivateData.PSData) { $pre = $best.PrivateData.PSData.Prerelease }
    if ($pre) { $version = "$version-$pre" }
    Write-Item $best.Name $version $null ([string]$best.Guid)
}
exit 0
"""
)
