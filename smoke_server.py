import sys
import time

import requests

BASE_URL = "http://localhost:8000"


def smoke_test(content="alpha, beta, gamma, delta, epsilon", timeout=60):
    """Submit a job to a running server, wait for it and download the PDF"""
    print("Testing Spiral PDF Server...")

    print("\n1. Testing health endpoint...")
    response = requests.get(f"{BASE_URL}/v1/healthz", timeout=5)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    print(f"✓ Health check: {data}")

    print("\n2. Submitting job...")
    response = requests.post(f"{BASE_URL}/v1/pdf/generate", json={"content": content}, timeout=5)
    assert response.status_code == 201
    job_id = response.json()["job_id"]
    print(f"✓ Job created: {job_id}")

    print("\n3. Polling status...")
    deadline = time.time() + timeout
    while True:
        response = requests.get(f"{BASE_URL}/v1/pdf/status/{job_id}", timeout=5)
        assert response.status_code == 200
        status = response.json()["status"]
        print(f"  status: {status}")
        if status in ("completed", "failed"):
            break
        if time.time() > deadline:
            print("❌ Job did not finish in time")
            return False
        time.sleep(1)

    if status == "failed":
        print(f"❌ Job failed: {response.json().get('error_detail')}")
        return False

    print("\n4. Downloading PDF...")
    response = requests.get(f"{BASE_URL}/v1/pdf/download/{job_id}", timeout=10)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    print(f"✓ Downloaded {len(response.content)} bytes")

    print("\n5. Testing non-existent job...")
    response = requests.get(f"{BASE_URL}/v1/pdf/status/nonexistent", timeout=5)
    assert response.status_code == 404
    print("✓ Non-existent job returns 404")

    print("\n🎉 Smoke test passed!")
    return True


if __name__ == "__main__":
    try:
        ok = smoke_test(*sys.argv[1:2])
    except requests.exceptions.ConnectionError:
        print("❌ Cannot connect to server. Make sure it's running on localhost:8000")
        ok = False
    sys.exit(0 if ok else 1)
