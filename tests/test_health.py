# tests/test_health.py
def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_describes_the_service(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "SwapChat"
