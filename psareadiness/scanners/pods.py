from typing import Callable, List, Set, Tuple
from .levels import Level, parse_level, compare_levels
from .shared import iter_containers, container_security_context
from ..utils.findings import CheckResult

# Pod Security Standards, https://kubernetes.io/docs/concepts/security/pod-security-standards/

BASELINE_ALLOWED_CAPS: Set[str] = {
    "AUDIT_WRITE", "CHOWN", "DAC_OVERRIDE", "FOWNER", "FSETID", "KILL", "MKNOD",
    "NET_BIND_SERVICE", "SETFCAP", "SETGID", "SETPCAP", "SETUID", "SYS_CHROOT",
}

ALLOWED_SELINUX_TYPES: Set[str] = {
    "", "container_t", "container_init_t", "container_kvm_t", "container_engine_t",
}

SAFE_SYSCTLS: Set[str] = {
    "kernel.shm_rmid_forced",
    "net.ipv4.ip_local_port_range",
    "net.ipv4.ip_unprivileged_port_start",
    "net.ipv4.tcp_syncookies",
    "net.ipv4.ping_group_range",
    "net.ipv4.ip_local_reserved_ports",
    "net.ipv4.tcp_keepalive_time",
    "net.ipv4.tcp_fin_timeout",
    "net.ipv4.tcp_keepalive_intvl",
    "net.ipv4.tcp_keepalive_probes",
}

RESTRICTED_VOLUME_TYPES: Set[str] = {
    "config_map", "csi", "downward_api", "empty_dir", "ephemeral",
    "persistent_volume_claim", "projected", "secret",
}

APPARMOR_ANNOTATION_PREFIX = "container.apparmor.security.beta.kubernetes.io/"


def _allowed(check_id: str) -> CheckResult:
    return CheckResult(check_id=check_id)


def _forbidden(check_id: str, reason: str, detail: str) -> CheckResult:
    return CheckResult(check_id=check_id, allowed=False, forbidden_reason=reason, forbidden_detail=detail)


def _pod_sc(spec):
    return getattr(spec, "security_context", None)


def _quoted(names) -> str:
    return ", ".join(f'"{n}"' for n in names)


# baseline

def check_host_process(meta, spec) -> CheckResult:
    offenders = []
    psc = _pod_sc(spec)
    if psc and getattr(getattr(psc, "windows_options", None), "host_process", None) is True:
        offenders.append("pod")
    for c, name in iter_containers(spec):
        sc = container_security_context(c)
        if sc and getattr(getattr(sc, "windows_options", None), "host_process", None) is True:
            offenders.append(name)
    if offenders:
        return _forbidden("hostProcess", "hostProcess", f"hostProcess=true ({_quoted(offenders)})")
    return _allowed("hostProcess")


def check_host_namespaces(meta, spec) -> CheckResult:
    used = [f for f, attr in (("hostNetwork", "host_network"), ("hostPID", "host_pid"), ("hostIPC", "host_ipc"))
            if getattr(spec, attr, None) is True]
    if used:
        return _forbidden("hostNamespaces", "host namespaces", ", ".join(f"{f}=true" for f in used))
    return _allowed("hostNamespaces")


def check_privileged(meta, spec) -> CheckResult:
    offenders = [name for c, name in iter_containers(spec)
                 if getattr(container_security_context(c), "privileged", None) is True]
    if offenders:
        return _forbidden("privileged", "privileged", f"containers {_quoted(offenders)} must not set securityContext.privileged=true")
    return _allowed("privileged")


def check_capabilities_baseline(meta, spec) -> CheckResult:
    bad: Set[str] = set()
    offenders = []
    for c, name in iter_containers(spec):
        caps = getattr(container_security_context(c), "capabilities", None)
        extra = set(getattr(caps, "add", None) or []) - BASELINE_ALLOWED_CAPS
        if extra:
            bad |= extra
            offenders.append(name)
    if offenders:
        return _forbidden("capabilities_baseline", "non-default capabilities",
                          f"containers {_quoted(offenders)} must not include {_quoted(sorted(bad))} in securityContext.capabilities.add")
    return _allowed("capabilities_baseline")


def check_host_path_volumes(meta, spec) -> CheckResult:
    vols = [v.name for v in (spec.volumes or []) if getattr(v, "host_path", None)]
    if vols:
        return _forbidden("hostPathVolumes", "hostPath volumes", f"volumes {_quoted(vols)}")
    return _allowed("hostPathVolumes")


def check_host_ports(meta, spec) -> CheckResult:
    ports = []
    for c, name in iter_containers(spec):
        for p in (getattr(c, "ports", None) or []):
            if getattr(p, "host_port", None):
                ports.append(str(p.host_port))
    if ports:
        return _forbidden("hostPorts", "hostPort", ", ".join(ports))
    return _allowed("hostPorts")


def check_app_armor_profile(meta, spec) -> CheckResult:
    bad = []
    for key, value in ((getattr(meta, "annotations", None) or {}).items()):
        if key.startswith(APPARMOR_ANNOTATION_PREFIX):
            if value != "runtime/default" and not value.startswith("localhost/"):
                bad.append(f"{key}={value}")
    profiles = [("pod", getattr(_pod_sc(spec), "app_armor_profile", None))]
    profiles += [(name, getattr(container_security_context(c), "app_armor_profile", None)) for c, name in iter_containers(spec)]
    for name, profile in profiles:
        if profile is not None and getattr(profile, "type", None) == "Unconfined":
            bad.append(f'{name} appArmorProfile.type="Unconfined"')
    if bad:
        return _forbidden("appArmorProfile", "forbidden AppArmor profiles", ", ".join(bad))
    return _allowed("appArmorProfile")


def check_selinux_options(meta, spec) -> CheckResult:
    bad = []
    options = [("pod", getattr(_pod_sc(spec), "se_linux_options", None))]
    options += [(name, getattr(container_security_context(c), "se_linux_options", None)) for c, name in iter_containers(spec)]
    for name, opts in options:
        if opts is None:
            continue
        if (opts.type or "") not in ALLOWED_SELINUX_TYPES:
            bad.append(f'{name} type "{opts.type}"')
        if opts.user:
            bad.append(f'{name} user "{opts.user}"')
        if opts.role:
            bad.append(f'{name} role "{opts.role}"')
    if bad:
        return _forbidden("seLinuxOptions", "seLinuxOptions", ", ".join(bad))
    return _allowed("seLinuxOptions")


def check_proc_mount(meta, spec) -> CheckResult:
    offenders = []
    for c, name in iter_containers(spec):
        mount = getattr(container_security_context(c), "proc_mount", None)
        if mount not in (None, "", "Default"):
            offenders.append(name)
    if offenders:
        return _forbidden("procMount", "procMount", f"containers {_quoted(offenders)} must not set securityContext.procMount")
    return _allowed("procMount")


def check_seccomp_baseline(meta, spec) -> CheckResult:
    offenders = []
    if getattr(getattr(_pod_sc(spec), "seccomp_profile", None), "type", None) == "Unconfined":
        offenders.append("pod")
    for c, name in iter_containers(spec):
        if getattr(getattr(container_security_context(c), "seccomp_profile", None), "type", None) == "Unconfined":
            offenders.append(name)
    if offenders:
        return _forbidden("seccompProfile_baseline", "seccompProfile", f'{_quoted(offenders)} must not set seccompProfile.type to "Unconfined"')
    return _allowed("seccompProfile_baseline")


def check_sysctls(meta, spec) -> CheckResult:
    bad = [s.name for s in (getattr(_pod_sc(spec), "sysctls", None) or []) if s.name not in SAFE_SYSCTLS]
    if bad:
        return _forbidden("sysctls", "forbidden sysctls", ", ".join(bad))
    return _allowed("sysctls")


# restricted

def check_volume_types(meta, spec) -> CheckResult:
    bad = []
    for v in (spec.volumes or []):
        for attr in getattr(v, "openapi_types", {}):
            if attr == "name" or getattr(v, attr, None) is None:
                continue
            if attr not in RESTRICTED_VOLUME_TYPES:
                bad.append(f'{v.name}: {attr}')
    if bad:
        return _forbidden("restrictedVolumes", "restricted volume types", ", ".join(bad))
    return _allowed("restrictedVolumes")


def check_allow_privilege_escalation(meta, spec) -> CheckResult:
    offenders = [name for c, name in iter_containers(spec)
                 if getattr(container_security_context(c), "allow_privilege_escalation", None) is not False]
    if offenders:
        return _forbidden("allowPrivilegeEscalation", "allowPrivilegeEscalation != false",
                          f"containers {_quoted(offenders)} must set securityContext.allowPrivilegeEscalation=false")
    return _allowed("allowPrivilegeEscalation")


def check_run_as_non_root(meta, spec) -> CheckResult:
    pod_value = getattr(_pod_sc(spec), "run_as_non_root", None)
    explicit_bad, implicit_bad = [], []
    for c, name in iter_containers(spec):
        value = getattr(container_security_context(c), "run_as_non_root", None)
        if value is False:
            explicit_bad.append(name)
        elif value is None and pod_value is not True:
            implicit_bad.append(name)
    if pod_value is False or explicit_bad or implicit_bad:
        return _forbidden("runAsNonRoot", "runAsNonRoot != true",
                          f"pod or containers {_quoted(explicit_bad + implicit_bad)} must set securityContext.runAsNonRoot=true")
    return _allowed("runAsNonRoot")


def check_run_as_user(meta, spec) -> CheckResult:
    offenders = []
    if getattr(_pod_sc(spec), "run_as_user", None) == 0:
        offenders.append("pod")
    for c, name in iter_containers(spec):
        if getattr(container_security_context(c), "run_as_user", None) == 0:
            offenders.append(name)
    if offenders:
        return _forbidden("runAsUser", "runAsUser=0", f"{_quoted(offenders)} must not set runAsUser=0")
    return _allowed("runAsUser")


def check_seccomp_restricted(meta, spec) -> CheckResult:
    valid = ("RuntimeDefault", "Localhost")
    pod_type = getattr(getattr(_pod_sc(spec), "seccomp_profile", None), "type", None)
    offenders = []
    for c, name in iter_containers(spec):
        ctype = getattr(getattr(container_security_context(c), "seccomp_profile", None), "type", None)
        if ctype is None:
            if pod_type not in valid:
                offenders.append(name)
        elif ctype not in valid:
            offenders.append(name)
    if pod_type is not None and pod_type not in valid:
        offenders.insert(0, "pod")
    if offenders:
        return _forbidden("seccompProfile_restricted", "seccompProfile",
                          f'{_quoted(offenders)} must set securityContext.seccompProfile.type to "RuntimeDefault" or "Localhost"')
    return _allowed("seccompProfile_restricted")


def check_capabilities_restricted(meta, spec) -> CheckResult:
    missing_drop, bad_add = [], []
    for c, name in iter_containers(spec):
        caps = getattr(container_security_context(c), "capabilities", None)
        if "ALL" not in (getattr(caps, "drop", None) or []):
            missing_drop.append(name)
        if set(getattr(caps, "add", None) or []) - {"NET_BIND_SERVICE"}:
            bad_add.append(name)
    if missing_drop or bad_add:
        parts = []
        if missing_drop:
            parts.append(f'containers {_quoted(missing_drop)} must set securityContext.capabilities.drop=["ALL"]')
        if bad_add:
            parts.append(f'containers {_quoted(bad_add)} must not include capabilities other than "NET_BIND_SERVICE"')
        return _forbidden("capabilities_restricted", "unrestricted capabilities", "; ".join(parts))
    return _allowed("capabilities_restricted")


Check = Callable[[object, object], CheckResult]

CHECKS: List[Tuple[Level, Check]] = [
    (Level.BASELINE, check_host_process),
    (Level.BASELINE, check_host_namespaces),
    (Level.BASELINE, check_privileged),
    (Level.BASELINE, check_capabilities_baseline),
    (Level.BASELINE, check_host_path_volumes),
    (Level.BASELINE, check_host_ports),
    (Level.BASELINE, check_app_armor_profile),
    (Level.BASELINE, check_selinux_options),
    (Level.BASELINE, check_proc_mount),
    (Level.BASELINE, check_seccomp_baseline),
    (Level.BASELINE, check_sysctls),
    (Level.RESTRICTED, check_volume_types),
    (Level.RESTRICTED, check_allow_privilege_escalation),
    (Level.RESTRICTED, check_run_as_non_root),
    (Level.RESTRICTED, check_run_as_user),
    (Level.RESTRICTED, check_seccomp_restricted),
    (Level.RESTRICTED, check_capabilities_restricted),
]


def evaluate_pod(level, meta, spec) -> List[CheckResult]:
    """Run every check that applies at `level`. An empty list means nothing is forbidden."""
    level = parse_level(level)
    if spec is None:
        return []
    return [check(meta, spec) for min_level, check in CHECKS if compare_levels(level, min_level) >= 0]
