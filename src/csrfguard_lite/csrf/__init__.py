"""CSRF token lifecycle: attach, capture, refresh on 401, retry once."""
from csrfguard_lite.csrf.builder import build_csrf_pipeline
from csrfguard_lite.csrf.retry_interceptor import RetryOnAuthInterceptor
from csrfguard_lite.csrf.token_interceptor import CsrfTokenInterceptor, attach_token, merge_cookie

__all__ = [
    "build_csrf_pipeline",
    "RetryOnAuthInterceptor",
    "CsrfTokenInterceptor",
    "attach_token",
    "merge_cookie",
]
