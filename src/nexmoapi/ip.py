import ipaddress

SUBNETS = [
    ipaddress.ip_network(mask)
    for mask in (
        "174.37.245.32/29",
        "174.36.197.192/28",
        "173.193.199.16/28",
        "119.81.44.0/28",
    )
]


def is_trusted_ip(ip: str) -> bool:
    """Return True if ``ip`` belongs to one of Nexmo's callback subnets.

    Anything that does not parse as an address is untrusted.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(address in subnet for subnet in SUBNETS)
