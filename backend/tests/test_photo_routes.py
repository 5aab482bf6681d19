"""Crop endpoints and photo serving."""
import io

from helpers import image_bytes, open_image

CROP_FORM = {
    "x": "20", "y": "20", "width": "100", "height": "100",
    "display_width": "200", "display_height": "200",
}


def _upload(client, headers, data, filename="kind.png", mimetype="image/png", **form):
    payload = dict(CROP_FORM, **form)
    payload["photo"] = (io.BytesIO(data), filename, mimetype)
    return client.post('/api/photos/crop', data=payload, headers=headers, content_type='multipart/form-data')


def test_initial_crop(client, owner):
    _, headers = owner
    response = client.post(
        '/api/photos/crop/initial', json={"display_width": 200, "display_height": 200}, headers=headers
    )

    region = response.get_json()["data"]
    assert (region["x"], region["y"], region["width"], region["height"]) == (20, 20, 160, 160)
    assert region["aspect"] == 1.0


def test_adjust_crop_clamps_and_squares(client, owner):
    _, headers = owner
    response = client.post('/api/photos/crop/adjust', json={
        "crop": {"x": 20, "y": 20, "width": 160, "height": 160},
        "candidate": {"x": 150, "y": 10, "width": 120, "height": 90},
        "display_width": 200,
        "display_height": 200,
    }, headers=headers)

    region = response.get_json()["data"]
    assert region["width"] == region["height"] == 90
    assert region["x"] + region["width"] <= 200


def test_adjust_crop_rejects_non_numbers(client, owner):
    _, headers = owner
    response = client.post('/api/photos/crop/adjust', json={
        "crop": {"x": 0, "y": 0, "width": 10, "height": 10},
        "candidate": {"x": "links", "y": 0, "width": 10, "height": 10},
        "display_width": 200,
        "display_height": 200,
    }, headers=headers)
    assert response.status_code == 400


def test_crop_upload_stores_normalised_photo(client, owner):
    _, headers = owner

    response = _upload(client, headers, image_bytes(size=(400, 400)))

    assert response.status_code == 201
    data = response.get_json()["data"]
    assert data["mime_type"] == "image/png"
    assert (data["width"], data["height"]) == (300, 300)
    assert data["source_rect"] == {"x": 40, "y": 40, "width": 200, "height": 200}
    assert data["photo_url"].startswith("http://testserver/api/photos/")
    assert data["filename"].endswith(".png")

    served = client.get(f'/api/photos/{data["filename"]}')
    assert served.status_code == 200
    assert open_image(served.data).size == (300, 300)


def test_crop_upload_keeps_jpeg(client, owner):
    _, headers = owner

    response = _upload(client, headers, image_bytes("JPEG"), filename="kind.jpg", mimetype="image/jpeg")

    data = response.get_json()["data"]
    assert data["mime_type"] == "image/jpeg"
    assert data["filename"].endswith(".jpg")


def test_invalid_image_is_rejected(client, owner):
    _, headers = owner
    response = _upload(client, headers, b"niet een plaatje")

    assert response.status_code == 400
    assert response.get_json()["status"] == "error"


def test_zero_area_crop_is_rejected(client, owner):
    _, headers = owner
    response = _upload(client, headers, image_bytes(), width="0", height="0")
    assert response.status_code == 400


def test_non_positive_display_size(client, owner):
    _, headers = owner
    response = _upload(client, headers, image_bytes(), display_width="0")
    assert response.status_code == 400


def test_crop_requires_login(client):
    response = client.post('/api/photos/crop', data={}, content_type='multipart/form-data')
    assert response.status_code == 401


def test_unknown_photo_is_404(client):
    assert client.get('/api/photos/bestaat-niet.png').status_code == 404
