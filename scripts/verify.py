"""One-shot verification for a moderation API deployment.

Checks the config file, the inference backend, and the running service's
/api/health and /api/analyze endpoints.

Usage:
    pip install -e .
    python scripts/verify.py [SERVICE_URL]   (default http://localhost:$PORT)
"""
import json
import os
import sys

import httpx
from dotenv import load_dotenv

load_dotenv()

from moderation_api.config import load_config  # noqa: E402
from moderation_api.errors import ConfigError, PromptTemplateError  # noqa: E402
from moderation_api.prompt import build_prompt  # noqa: E402

SAMPLE_MESSAGE = "Go to the zoo and steal one!"
SERVICE_URL = (
    sys.argv[1] if len(sys.argv) > 1 else f"http://localhost:{os.getenv('PORT', '8080')}"
).rstrip("/")

results = {}

# 1. Config file
print("=" * 60)
print("1. CONFIG FILE")
print("=" * 60)
config_path = os.getenv("CONFIG_PATH", "config.json")
config = None
try:
    config = load_config(config_path)
    print(f"  Path: {config_path}")
    print(f"  Backend: {config.ollama_url}")
    print(f"  Model: {config.model}")
    print(f"  Policies: {len(config.policies)}")
    print(f"  Response format set: {config.response_format is not None}")
    build_prompt(SAMPLE_MESSAGE, config.policies, config.prompt_template)
    print("  Prompt template renders: True")
except ConfigError as e:
    print(f"  ERROR: {e}")
except PromptTemplateError as e:
    print(f"  Prompt template renders: False ({type(e).__name__}: {e})")
    config = None
results["1_config"] = config is not None
print(f"  => {'PASS' if config else 'FAIL'}")

# 2. Backend connectivity
print()
print("=" * 60)
print("2. INFERENCE BACKEND")
print("=" * 60)
backend_ok = False
if config is None:
    print("  skipped: no valid config")
    results["2a_backend_version"] = None
    results["2b_backend_generate"] = None
else:
    try:
        resp = httpx.get(f"{config.ollama_url}/api/version", timeout=10)
        print(f"  Version status: {resp.status_code} body={resp.text[:80]}")
        backend_ok = resp.status_code == 200
    except httpx.HTTPError as e:
        print(f"  ERROR: {type(e).__name__}: {e}")
    results["2a_backend_version"] = backend_ok

    generate_ok = False
    if backend_ok:
        try:
            prompt = build_prompt(SAMPLE_MESSAGE, config.policies, config.prompt_template)
            resp = httpx.post(
                f"{config.ollama_url}/api/generate",
                json={
                    "model": config.model,
                    "prompt": prompt,
                    "stream": False,
                    "format": config.response_format,
                },
                timeout=config.timeout_seconds or 120,
            )
            raw = resp.json().get("response", "")
            print(f"  Generate status: {resp.status_code}")
            print(f"  Raw answer preview: {raw[:100]}")
            try:
                json.loads(raw)
                print("  Answer is JSON: True")
            except ValueError:
                print("  WARNING: answer is not JSON; the service will drop such messages")
            generate_ok = resp.status_code == 200
        except (httpx.HTTPError, ValueError) as e:
            print(f"  ERROR: {type(e).__name__}: {e}")
    results["2b_backend_generate"] = generate_ok
    print(f"  => Version:  {'PASS' if backend_ok else 'FAIL'}")
    print(f"  => Generate: {'PASS' if generate_ok else 'FAIL'}")

# 3. /api/health endpoint
print()
print("=" * 60)
print("3. /api/health ENDPOINT")
print("=" * 60)
health_ok = False
try:
    resp = httpx.get(f"{SERVICE_URL}/api/health", timeout=10)
    print(f"  HTTP status: {resp.status_code}")
    print(f"  Body: {resp.text[:120]}")
    health_ok = resp.status_code == 200
    if resp.status_code == 503:
        print("  ROOT CAUSE: service cannot connect to the inference backend")
    elif resp.status_code == 502:
        print("  ROOT CAUSE: inference backend answered with an error status")
except httpx.HTTPError as e:
    print(f"  ERROR: {type(e).__name__}: {e} (is the service running at {SERVICE_URL}?)")
results["3_health_endpoint"] = health_ok
print(f"  => {'PASS' if health_ok else 'FAIL'}")

# 4. /api/analyze endpoint
print()
print("=" * 60)
print("4. /api/analyze ENDPOINT")
print("=" * 60)
analyze_ok = False
try:
    resp = httpx.post(
        f"{SERVICE_URL}/api/analyze",
        json={"messages": [SAMPLE_MESSAGE]},
        timeout=None,
    )
    body = resp.json()
    print(f"  HTTP status: {resp.status_code}")
    print(f"  Results: {len(body) if isinstance(body, list) else 'n/a'} of 1")
    if isinstance(body, list) and body:
        print(f"  Verdict: is_safe={body[0]['is_safe']} violated={body[0]['violated_policies']}")
    elif isinstance(body, list):
        print("  WARNING: message was dropped (check service logs for message_analysis_failed)")
    analyze_ok = resp.status_code == 200 and isinstance(body, list) and len(body) == 1
except (httpx.HTTPError, ValueError) as e:
    print(f"  ERROR: {type(e).__name__}: {e}")
results["4_analyze_endpoint"] = analyze_ok
print(f"  => {'PASS' if analyze_ok else 'FAIL'}")

# Final summary
print()
print("=" * 60)
print("FINAL VERIFICATION REPORT")
print("=" * 60)
for key, val in results.items():
    icon = "[PASS]" if val else ("[WARN]" if val is None else "[FAIL]")
    print(f"  {icon} {key}: {val}")
print("=" * 60)
