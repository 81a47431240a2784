from typing import Dict

from fastapi import Request


def should_skip(skip_paths: Dict[str, list], request: Request) -> bool:
    """Check if the request matches a {path: [methods]} skip table."""
    path = str(request.url.path)
    method = request.method.upper()

    if path in skip_paths:
        allowed_methods = skip_paths[path]
        if "*" in allowed_methods or method in allowed_methods:
            return True

    return False


def in_namespace(path: str, prefix: str) -> bool:
    """True for the prefix itself and anything below it, but not /apiary for /api."""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")
