"""Hostname rendering from a parsed pattern."""

from asgdns.exceptions import InvalidHostnameError
from asgdns.models import HostnamePattern, ResolvedHostname
from asgdns.utils.security import InputValidator


def _canonical(name: str) -> str:
    return name[:-1] if name.endswith(".") else name


def render_hostname(
    pattern: HostnamePattern,
    instance_id: str,
    placeholder: str = "#instanceid",
) -> ResolvedHostname:
    """
    Substitute the instance id into the pattern's template.

    Every placeholder occurrence is replaced with the literal instance id.
    A trailing dot is dropped so the fqdn is stored in one canonical form.

    Raises:
        InvalidHostnameError: If the result is not a valid DNS name
    """
    fqdn = _canonical(pattern.template.replace(placeholder, instance_id))

    result = InputValidator.validate_hostname(fqdn)
    if not result.is_valid:
        raise InvalidHostnameError(
            f"Rendered hostname '{fqdn}' is invalid: {'; '.join(result.errors)}"
        )

    return ResolvedHostname(fqdn=result.sanitized_value, zone_id=pattern.zone_id)


def extract_instance_id(
    fqdn: str,
    template: str,
    placeholder: str = "#instanceid",
) -> str | None:
    """
    Recover the instance id from a hostname rendered from ``template``.

    Returns:
        The instance id, or None if the hostname does not match the template
        or the template has no placeholder
    """
    template = _canonical(template)
    fqdn = _canonical(fqdn)
    if placeholder not in template:
        return None

    prefix, suffix = template.split(placeholder, 1)
    if len(fqdn) < len(prefix) + len(suffix):
        return None
    if not (fqdn.startswith(prefix) and fqdn.endswith(suffix)):
        return None

    return fqdn[len(prefix): len(fqdn) - len(suffix)]
