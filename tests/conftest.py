"""
Shared pytest fixtures for workload-spine tests.

This module provides:
- Settings cache isolation between tests
- Sample workload documents for each workload type
"""

from __future__ import annotations

import pytest

from workload_spine.core.settings import clear_settings_cache


@pytest.fixture(autouse=True)
def _clear_settings():
    """Reset cached settings so env var changes in one test never leak."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Sample documents
# =============================================================================


@pytest.fixture
def backend_document() -> str:
    return """
name: api
type: Backend Service
image:
  build: api/Dockerfile
  port: 8080
cpu: 256
memory: 512
count: 1
variables:
  LOG_LEVEL: info
environments:
  test:
    count: 2
  prod:
    count:
      range: 2-10
      cpu_percentage: 70
    variables:
      LOG_LEVEL: warn
"""


@pytest.fixture
def web_document() -> str:
    return """
name: frontend
type: Load Balanced Web Service
image:
  location: nginx:1.25
  port: 80
  healthcheck:
    command: ["CMD-SHELL", "curl -f http://localhost/health || exit 1"]
    retries: 4
http:
  path: /
  healthcheck:
    path: /health
    healthy_threshold: 3
    interval: 15s
logging:
  destination:
    Name: cloudwatch
sidecars:
  xray:
    port: 2000/udp
    image: amazon/aws-xray-daemon
environments:
  prod:
    logging:
      image: custom/fluentbit
"""


@pytest.fixture
def job_document() -> str:
    return """
name: report
type: Scheduled Job
image:
  build:
    context: jobs/report
    args:
      MODE: nightly
on:
  schedule: "@daily"
retries: 3
timeout: 1h30m
environments:
  prod:
    on:
      schedule: "0 2 * * *"
"""
