"""Student roster endpoints."""
import pytest

from helpers import image_bytes
from services.storage import StorageService


@pytest.fixture
def cohort_id(client, owner):
    _, headers = owner
    return client.post('/api/cohorts/', json={"name": "Groep 7"}, headers=headers).get_json()["data"]["id"]


@pytest.fixture
def headers(owner):
    return owner[1]


def _add(client, headers, cohort_id, name, leergroep, **extra):
    return client.post(
        f'/api/cohorts/{cohort_id}/students',
        json={"name": name, "leergroep": leergroep, **extra},
        headers=headers,
    )


def test_create_student(client, headers, cohort_id):
    response = _add(client, headers, cohort_id, "  Lotte ", 2)

    assert response.status_code == 201
    student = response.get_json()["data"]
    assert student["name"] == "Lotte"
    assert student["leergroep"] == 2
    assert student["photo_url"] is None


@pytest.mark.parametrize("leergroep", [0, 4, 2.9, "twee", None, True])
def test_invalid_leergroep(client, headers, cohort_id, leergroep):
    response = _add(client, headers, cohort_id, "Lotte", leergroep)
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "validation_error"


def test_leergroep_as_string_is_accepted(client, headers, cohort_id):
    assert _add(client, headers, cohort_id, "Lotte", "3").get_json()["data"]["leergroep"] == 3


def test_empty_name(client, headers, cohort_id):
    assert _add(client, headers, cohort_id, "   ", 1).status_code == 400


def test_list_is_sorted_grouped_and_counted(client, headers, cohort_id):
    for name, group in [("Noah", 1), ("Fenna", 2), ("Bas", 1), ("Zoë", 3)]:
        _add(client, headers, cohort_id, name, group)

    data = client.get(f'/api/cohorts/{cohort_id}/students', headers=headers).get_json()["data"]

    assert data["filter"] == "all"
    assert [s["name"] for s in data["students"]] == ["Bas", "Fenna", "Noah", "Zoë"]
    assert [s["name"] for s in data["grouped"]["1"]] == ["Bas", "Noah"]
    assert data["counts"] == {"1": 2, "2": 1, "3": 1}
    assert data["total"] == 4
    assert data["cohort"]["student_count"] == 4


def test_list_filtered_by_group(client, headers, cohort_id):
    _add(client, headers, cohort_id, "Noah", 1)
    _add(client, headers, cohort_id, "Fenna", 2)

    data = client.get(f'/api/cohorts/{cohort_id}/students?leergroep=2', headers=headers).get_json()["data"]

    assert data["filter"] == 2
    assert [s["name"] for s in data["students"]] == ["Fenna"]
    assert data["grouped"]["1"] == []
    assert data["counts"] == {"1": 1, "2": 1, "3": 0}


def test_list_rejects_unknown_filter(client, headers, cohort_id):
    response = client.get(f'/api/cohorts/{cohort_id}/students?leergroep=9', headers=headers)
    assert response.status_code == 400


def test_change_leergroep(client, headers, cohort_id):
    student = _add(client, headers, cohort_id, "Noah", 1).get_json()["data"]

    response = client.patch(f'/api/students/{student["id"]}/leergroep', json={"leergroep": 3}, headers=headers)

    assert response.status_code == 200
    assert response.get_json()["data"]["leergroep"] == 3


def test_update_is_partial(client, headers, cohort_id):
    student = _add(client, headers, cohort_id, "Noah", 1).get_json()["data"]

    response = client.put(
        f'/api/students/{student["id"]}',
        json={"photo_url": "https://example.org/noah.png"},
        headers=headers,
    )

    updated = response.get_json()["data"]
    assert updated["name"] == "Noah"
    assert updated["leergroep"] == 1
    assert updated["photo_url"] == "https://example.org/noah.png"


def test_update_rejects_bad_values_without_partial_write(client, headers, cohort_id):
    student = _add(client, headers, cohort_id, "Noah", 1).get_json()["data"]

    response = client.put(
        f'/api/students/{student["id"]}',
        json={"name": "Noor", "leergroep": 5},
        headers=headers,
    )
    assert response.status_code == 400

    current = client.get(f'/api/students/{student["id"]}', headers=headers).get_json()["data"]
    assert (current["name"], current["leergroep"]) == ("Noah", 1)


def test_delete_removes_stored_photo(client, headers, cohort_id):
    storage = StorageService()
    photo_url = storage.upload("1700000000001.png", image_bytes(), "image/png")
    student = _add(client, headers, cohort_id, "Noah", 1, photo_url=photo_url).get_json()["data"]

    response = client.delete(f'/api/students/{student["id"]}', headers=headers)

    assert response.status_code == 200
    assert response.get_json()["data"]["photo_removed"] is True
    assert not storage.exists(storage.name_from_url(photo_url))
    assert client.get(f'/api/students/{student["id"]}', headers=headers).status_code == 404


def test_delete_leaves_foreign_photo_urls_alone(client, headers, cohort_id):
    student = _add(
        client, headers, cohort_id, "Noah", 1, photo_url="https://example.org/noah.png"
    ).get_json()["data"]

    response = client.delete(f'/api/students/{student["id"]}', headers=headers)

    assert response.get_json()["data"]["photo_removed"] is False


def test_whole_float_leergroep_is_accepted(client, headers, cohort_id):
    assert _add(client, headers, cohort_id, "Lotte", 2.0).get_json()["data"]["leergroep"] == 2


def test_non_string_name(client, headers, cohort_id):
    response = _add(client, headers, cohort_id, 12345, 1)
    assert response.status_code == 400
    assert response.get_json()["message"] == "name is required"


@pytest.mark.parametrize("photo_url", [
    "ftp://example.org/noah.png",
    "file:///etc/passwd",
    "javascript:alert(1)",
    "noah.png",
])
def test_photo_url_must_be_http(client, headers, cohort_id, photo_url):
    response = _add(client, headers, cohort_id, "Noah", 1, photo_url=photo_url)
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "validation_error"
