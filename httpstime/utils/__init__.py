from httpstime.utils.general import certificate_fingerprint, fingerprint, normalize_target, parse_fingerprint

__all__ = ["certificate_fingerprint", "fingerprint", "normalize_target", "parse_fingerprint"]
