"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: profiles.py.
"""

from __future__ import annotations

from .runtime.contracts import AdmissionPolicy, CachePolicy, RetryPolicy, TimeoutPolicy


PROFILES = {
    "development": {
        "retry": RetryPolicy(max_attempts=2, base_delay_s=0.2, max_delay_s=1.0),
        "timeout": TimeoutPolicy(request_timeout_s=60.0, stream_idle_timeout_s=90.0),
        "admission": AdmissionPolicy(concurrency=2),
        "cache": CachePolicy(enabled=True, ttl_s=300.0, max_size=200),
    },
    "production": {
        "retry": RetryPolicy(max_attempts=3, base_delay_s=1.0, max_delay_s=10.0),
        "timeout": TimeoutPolicy(request_timeout_s=30.0, stream_idle_timeout_s=45.0),
        "admission": AdmissionPolicy(
            concurrency=5,
            requests_per_second=1.0,
            burst=10,
            requests_per_day=1500,
        ),
        "cache": CachePolicy(enabled=True, ttl_s=3600.0, max_size=1000),
    },
    "low_latency": {
        "retry": RetryPolicy(max_attempts=2, base_delay_s=0.1, max_delay_s=0.5),
        "timeout": TimeoutPolicy(request_timeout_s=10.0, stream_idle_timeout_s=20.0),
        "admission": AdmissionPolicy(concurrency=10),
        "cache": CachePolicy(enabled=True, ttl_s=600.0, max_size=2000),
    },
}
