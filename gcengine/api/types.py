"""Compute Engine v1 resource types.

TypedDicts for API resources - responses are used as returned, keys are the
camelCase names the API sends. Every resource is identified by its selfLink.
"""

from __future__ import annotations

from typing import Literal, NotRequired, TypedDict

type OperationStatus = Literal["PENDING", "RUNNING", "DONE"]
type InstanceStatus = Literal[
    "PROVISIONING",
    "STAGING",
    "RUNNING",
    "STOPPING",
    "STOPPED",
    "SUSPENDING",
    "SUSPENDED",
    "TERMINATED",
]
type DeprecationState = Literal["ACTIVE", "DEPRECATED", "OBSOLETE", "DELETED"]


class Deprecated(TypedDict, total=False):
    state: DeprecationState
    replacement: str
    deprecated: str
    obsolete: str
    deleted: str


class ApiWarning(TypedDict, total=False):
    code: str
    message: str
    data: list[dict[str, str]]


# =============================================================================
# Operations
# =============================================================================


class OperationErrorEntry(TypedDict, total=False):
    code: str
    location: str
    message: str


class OperationError(TypedDict):
    errors: list[OperationErrorEntry]


class Operation(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    status: OperationStatus
    operationType: NotRequired[str]
    targetLink: NotRequired[str]
    targetId: NotRequired[str]
    statusMessage: NotRequired[str]
    user: NotRequired[str]
    progress: NotRequired[int]
    insertTime: NotRequired[str]
    startTime: NotRequired[str]
    endTime: NotRequired[str]
    httpErrorStatusCode: NotRequired[int]
    httpErrorMessage: NotRequired[str]
    error: NotRequired[OperationError]
    warnings: NotRequired[list[ApiWarning]]
    region: NotRequired[str]
    zone: NotRequired[str]
    description: NotRequired[str]


# =============================================================================
# Instances
# =============================================================================


class MetadataItem(TypedDict):
    key: str
    value: str


class Metadata(TypedDict, total=False):
    kind: str
    fingerprint: str
    items: list[MetadataItem]


class Tags(TypedDict, total=False):
    fingerprint: str
    items: list[str]


class AccessConfig(TypedDict, total=False):
    kind: str
    name: str
    type: Literal["ONE_TO_ONE_NAT"]
    natIP: str


class NetworkInterface(TypedDict):
    name: NotRequired[str]
    network: str
    subnetwork: NotRequired[str]
    networkIP: NotRequired[str]
    accessConfigs: NotRequired[list[AccessConfig]]


class InitializeParams(TypedDict, total=False):
    diskName: str
    diskSizeGb: str
    sourceImage: str
    diskType: str


class AttachedDisk(TypedDict):
    type: Literal["PERSISTENT", "SCRATCH"]
    mode: NotRequired[Literal["READ_WRITE", "READ_ONLY"]]
    index: NotRequired[int]
    source: NotRequired[str]
    deviceName: NotRequired[str]
    autoDelete: NotRequired[bool]
    boot: NotRequired[bool]
    initializeParams: NotRequired[InitializeParams]
    licenses: NotRequired[list[str]]
    interface: NotRequired[Literal["SCSI", "NVME"]]


class ServiceAccount(TypedDict):
    email: str
    scopes: list[str]


class Scheduling(TypedDict, total=False):
    onHostMaintenance: Literal["MIGRATE", "TERMINATE"]
    automaticRestart: bool
    preemptible: bool


class Instance(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    tags: NotRequired[Tags]
    machineType: str
    status: NotRequired[InstanceStatus]
    statusMessage: NotRequired[str]
    zone: str
    canIpForward: NotRequired[bool]
    networkInterfaces: NotRequired[list[NetworkInterface]]
    disks: NotRequired[list[AttachedDisk]]
    metadata: NotRequired[Metadata]
    serviceAccounts: NotRequired[list[ServiceAccount]]
    scheduling: NotRequired[Scheduling]


class SerialPortOutput(TypedDict):
    kind: NotRequired[str]
    selfLink: NotRequired[str]
    contents: str
    start: NotRequired[str]
    next: NotRequired[str]


# =============================================================================
# Disks, images and machine types
# =============================================================================


class Disk(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    sizeGb: str
    zone: str
    status: NotRequired[Literal["CREATING", "RESTORING", "FAILED", "READY", "DELETING"]]
    sourceImage: NotRequired[str]
    sourceImageId: NotRequired[str]
    sourceSnapshot: NotRequired[str]
    type: NotRequired[str]
    users: NotRequired[list[str]]
    licenses: NotRequired[list[str]]


class DiskType(TypedDict):
    kind: NotRequired[str]
    id: NotRequired[str]
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    validDiskSize: NotRequired[str]
    defaultDiskSizeGb: NotRequired[str]
    zone: NotRequired[str]
    deprecated: NotRequired[Deprecated]


class RawDisk(TypedDict, total=False):
    source: str
    sha1Checksum: str
    containerType: Literal["TAR"]


class Image(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    family: NotRequired[str]
    sourceType: NotRequired[Literal["RAW"]]
    rawDisk: NotRequired[RawDisk]
    sourceDisk: NotRequired[str]
    sourceDiskId: NotRequired[str]
    status: NotRequired[Literal["PENDING", "READY", "FAILED"]]
    archiveSizeBytes: NotRequired[str]
    diskSizeGb: NotRequired[str]
    deprecated: NotRequired[Deprecated]
    licenses: NotRequired[list[str]]


class ScratchDisk(TypedDict):
    diskGb: int


class MachineType(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    guestCpus: int
    memoryMb: int
    imageSpaceGb: NotRequired[int]
    scratchDisks: NotRequired[list[ScratchDisk]]
    maximumPersistentDisks: NotRequired[int]
    maximumPersistentDisksSizeGb: NotRequired[str]
    zone: str
    deprecated: NotRequired[Deprecated]


class Snapshot(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    status: NotRequired[Literal["CREATING", "DELETING", "FAILED", "READY", "UPLOADING"]]
    diskSizeGb: NotRequired[str]
    sourceDisk: NotRequired[str]
    sourceDiskId: NotRequired[str]
    storageBytes: NotRequired[str]
    licenses: NotRequired[list[str]]


# =============================================================================
# Networking
# =============================================================================


class Network(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    IPv4Range: NotRequired[str]
    gatewayIPv4: NotRequired[str]
    autoCreateSubnetworks: NotRequired[bool]
    subnetworks: NotRequired[list[str]]


class Subnetwork(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    network: str
    ipCidrRange: str
    gatewayAddress: NotRequired[str]
    region: str


class FirewallRule(TypedDict):
    IPProtocol: str
    ports: NotRequired[list[str]]


class Firewall(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    network: str
    sourceRanges: NotRequired[list[str]]
    sourceTags: NotRequired[list[str]]
    targetTags: NotRequired[list[str]]
    allowed: NotRequired[list[FirewallRule]]


class Route(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    network: str
    tags: NotRequired[list[str]]
    destRange: str
    priority: NotRequired[int]
    nextHopInstance: NotRequired[str]
    nextHopIp: NotRequired[str]
    nextHopNetwork: NotRequired[str]
    nextHopGateway: NotRequired[str]
    warnings: NotRequired[list[ApiWarning]]


class Address(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    status: NotRequired[Literal["RESERVED", "IN_USE"]]
    address: str
    user: NotRequired[str]
    users: NotRequired[list[str]]
    region: NotRequired[str]


# =============================================================================
# Regions, zones and projects
# =============================================================================


class Quota(TypedDict):
    metric: str
    usage: float
    limit: float


class Region(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    status: NotRequired[Literal["UP", "DOWN"]]
    zones: list[str]
    quotas: NotRequired[list[Quota]]
    deprecated: NotRequired[Deprecated]


class Zone(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    status: NotRequired[Literal["UP", "DOWN"]]
    region: NotRequired[str]
    deprecated: NotRequired[Deprecated]


class UsageExportLocation(TypedDict, total=False):
    bucketName: str
    reportNamePrefix: str


class Project(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    commonInstanceMetadata: NotRequired[Metadata]
    quotas: NotRequired[list[Quota]]
    usageExportLocation: NotRequired[UsageExportLocation]


# =============================================================================
# Load balancing
# =============================================================================


class TargetPool(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    region: NotRequired[str]
    healthChecks: NotRequired[list[str]]
    instances: NotRequired[list[str]]
    sessionAffinity: NotRequired[Literal["NONE", "CLIENT_IP", "CLIENT_IP_PROTO"]]
    failoverRatio: NotRequired[float]
    backupPool: NotRequired[str]


class InstanceHealth(TypedDict, total=False):
    instance: str
    ipAddress: str
    healthState: Literal["HEALTHY", "UNHEALTHY"]


class TargetPoolHealth(TypedDict, total=False):
    kind: str
    healthStatus: list[InstanceHealth]


class TargetInstance(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    zone: NotRequired[str]
    natPolicy: NotRequired[Literal["NO_NAT"]]
    instance: str


class ForwardingRule(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    region: NotRequired[str]
    IPAddress: NotRequired[str]
    IPProtocol: NotRequired[Literal["TCP", "UDP", "ESP", "AH", "SCTP"]]
    portRange: NotRequired[str]
    target: str


class HttpHealthCheck(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    host: NotRequired[str]
    requestPath: NotRequired[str]
    port: NotRequired[int]
    checkIntervalSec: NotRequired[int]
    timeoutSec: NotRequired[int]
    unhealthyThreshold: NotRequired[int]
    healthyThreshold: NotRequired[int]


class Backend(TypedDict):
    group: str
    description: NotRequired[str]
    balancingMode: NotRequired[Literal["RATE", "UTILIZATION"]]
    maxUtilization: NotRequired[float]
    maxRate: NotRequired[int]
    maxRatePerInstance: NotRequired[float]
    capacityScaler: NotRequired[float]


class BackendService(TypedDict):
    kind: NotRequired[str]
    id: NotRequired[str]
    name: str
    selfLink: NotRequired[str]
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    backends: NotRequired[list[Backend]]
    healthChecks: list[str]
    timeoutSec: NotRequired[int]
    port: NotRequired[int]
    protocol: NotRequired[Literal["HTTP", "HTTPS"]]
    fingerprint: NotRequired[str]


class HealthStatus(TypedDict, total=False):
    ipAddress: str
    port: int
    instance: str
    healthState: Literal["HEALTHY", "UNHEALTHY"]


class BackendServiceGroupHealth(TypedDict, total=False):
    kind: str
    healthStatus: list[HealthStatus]


class HostRule(TypedDict):
    hosts: list[str]
    pathMatcher: str
    description: NotRequired[str]


class PathRule(TypedDict):
    paths: list[str]
    service: str


class PathMatcher(TypedDict):
    name: str
    defaultService: str
    description: NotRequired[str]
    pathRules: NotRequired[list[PathRule]]


class UrlMapTest(TypedDict):
    host: str
    path: str
    service: str
    description: NotRequired[str]


class UrlMap(TypedDict):
    kind: NotRequired[str]
    id: NotRequired[str]
    name: str
    selfLink: NotRequired[str]
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    defaultService: str
    hostRules: NotRequired[list[HostRule]]
    pathMatchers: NotRequired[list[PathMatcher]]
    tests: NotRequired[list[UrlMapTest]]
    fingerprint: NotRequired[str]


class TestFailure(TypedDict, total=False):
    host: str
    path: str
    expectedService: str
    actualService: str


class UrlMapValidateResult(TypedDict, total=False):
    loadSucceeded: bool
    loadErrors: list[str]
    testPassed: bool
    testFailures: list[TestFailure]


class UrlMapValidateResponse(TypedDict):
    result: UrlMapValidateResult


class TargetHttpProxy(TypedDict):
    kind: NotRequired[str]
    id: str
    name: str
    selfLink: str
    creationTimestamp: NotRequired[str]
    description: NotRequired[str]
    urlMap: str


# =============================================================================
# Helpers
# =============================================================================

type OperationScope = Literal["global", "region", "zone"]


def is_done(operation: Operation) -> bool:
    return operation.get("status") == "DONE"


def has_failed(operation: Operation) -> bool:
    """True when a DONE operation carries an HTTP error or an error payload."""
    return "httpErrorStatusCode" in operation or bool(operation.get("error", {}).get("errors"))


def operation_scope(operation: Operation) -> tuple[OperationScope, str | None]:
    """Where the operation lives, as ("zone", name), ("region", name) or ("global", None)."""
    if zone := operation.get("zone"):
        return "zone", zone.rsplit("/", 1)[-1]
    if region := operation.get("region"):
        return "region", region.rsplit("/", 1)[-1]
    return "global", None


def metadata_as_dict(metadata: Metadata | None) -> dict[str, str]:
    if not metadata:
        return {}
    return {item["key"]: item["value"] for item in metadata.get("items", [])}


def metadata_from_dict(items: dict[str, str], fingerprint: str | None = None) -> Metadata:
    metadata: Metadata = {
        "kind": "compute#metadata",
        "items": [{"key": k, "value": v} for k, v in items.items()],
    }
    if fingerprint:
        metadata["fingerprint"] = fingerprint
    return metadata
