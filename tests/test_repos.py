from envmanager.models.github import Environment, Owner, Repository


def make_repositories(count):
    return [
        Repository(
            id=i,
            name=f"service-{i}",
            full_name=f"acme/service-{i}",
            description="payments backend" if i == 7 else None,
            private=bool(i % 2),
            owner=Owner(login="acme", id=1),
        )
        for i in range(count)
    ]


def test_get_repositories_first_page(client, github):
    github.list_repositories.return_value = make_repositories(60)
    response = client.get("/api/repos")
    assert response.status_code == 200
    body = response.json()
    assert len(body["repositories"]) == 25
    assert body["repositories"][0]["full_name"] == "acme/service-0"
    assert body["pagination"] == {
        "page": 1,
        "per_page": 25,
        "total_count": 60,
        "has_next": True,
        "has_prev": False,
        "total_pages": 3,
    }


def test_get_repositories_last_page(client, github):
    github.list_repositories.return_value = make_repositories(60)
    response = client.get("/api/repos", params={"page": 3, "per_page": 25})
    body = response.json()
    assert [r["id"] for r in body["repositories"]] == list(range(50, 60))
    assert body["pagination"]["has_next"] is False
    assert body["pagination"]["has_prev"] is True


def test_get_repositories_page_past_end(client, github):
    github.list_repositories.return_value = make_repositories(3)
    response = client.get("/api/repos", params={"page": 5})
    assert response.status_code == 200
    assert response.json()["repositories"] == []


def test_get_repositories_rejects_bad_per_page(client, github):
    response = client.get("/api/repos", params={"per_page": 500})
    assert response.status_code == 422


def test_search_repositories(client, github):
    github.list_repositories.return_value = make_repositories(20)
    response = client.get("/api/repos", params={"q": "PAYMENTS"})
    body = response.json()
    assert [r["full_name"] for r in body["repositories"]] == ["acme/service-7"]
    assert body["pagination"]["total_count"] == 1
    assert body["pagination"]["total_pages"] == 1


def test_search_repositories_by_owner(client, github):
    github.list_repositories.return_value = make_repositories(4)
    response = client.get("/api/repos", params={"q": "acme"})
    assert response.json()["pagination"]["total_count"] == 4


def test_get_environments(client, github):
    github.list_environments.return_value = [Environment(name="staging"), Environment(name="production")]
    response = client.get("/api/repos/acme/service-1/environments")
    assert response.status_code == 200
    assert response.json() == ["staging", "production"]
    github.list_environments.assert_called_once_with("acme", "service-1")


def test_create_environment(client, github):
    github.create_environment.return_value = Environment(name="qa")
    response = client.post("/api/repos/acme/service-1/environments", json={"name": "qa"})
    assert response.status_code == 201
    assert response.json()["name"] == "qa"
    github.create_environment.assert_called_once_with("acme", "service-1", "qa")


def test_healthcheck(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
