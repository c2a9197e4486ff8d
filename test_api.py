"""
Endpoint tests for the Presence+ API and the two demo servers.

Run with:
    pytest
"""
from fastapi.testclient import TestClient

from conftest import ADMIN_SECRET, STUDENT, auth
from presence.demo_servers import create_handler_app, create_roster_app
from presence.services.qr import build_qr_payload, encode_qr_payload

CLASSROOM = {"lat": 12.9716, "lng": 77.5946}
NEARBY = {"lat": 12.9717, "lng": 77.5946}
FAR = {"lat": 12.9726, "lng": 77.5946}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# --- Demo servers ---

def test_submit_attendance_present(client):
    response = client.post("/submit-attendance", json={"status": "present"})
    assert response.status_code == 200
    assert response.json() == {"message": "Attendance marked as present"}


def test_submit_attendance_absent(client):
    response = client.post("/submit-attendance", json={"status": "absent"})
    assert response.json() == {"message": "Attendance marked as absent"}


def test_submit_attendance_invalid_status(client):
    for body in ({"status": "maybe"}, {}, {"status": 5}, {"status": ["present"]}):
        response = client.post("/submit-attendance", json=body)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid attendance status"}


def test_generate_qr_returns_img_tag(client):
    response = client.get("/generate-qr")
    assert response.status_code == 200
    assert response.text.startswith('<img src="data:image/png;base64,')
    assert response.text.endswith('alt="QR Code" />')


def test_roster_update(client):
    response = client.post("/api/attendance", json={"studentId": 2, "isPresent": True})
    assert response.status_code == 200
    assert response.json() == [
        {"id": 1, "name": "John Doe", "isPresent": True},
        {"id": 2, "name": "Jane Smith", "isPresent": True},
    ]


def test_roster_update_unknown_student(client):
    response = client.post("/api/attendance", json={"studentId": 99, "isPresent": True})
    assert response.status_code == 404
    assert response.text == "Student not found"


def test_roster_summary(client):
    response = client.get("/api/attendance")
    assert response.status_code == 200
    assert response.json()[0] == {"name": "Student A", "attendance": 95}
    assert len(response.json()) == 4


def test_standalone_demo_servers_keep_separate_state():
    handler = TestClient(create_handler_app())
    first, second = TestClient(create_roster_app()), TestClient(create_roster_app())

    assert handler.post("/submit-attendance", json={"status": "present"}).status_code == 200
    assert handler.get("/api/attendance").status_code == 404

    first.post("/api/attendance", json={"studentId": 1, "isPresent": False})
    assert second.post("/api/attendance", json={"studentId": 2, "isPresent": False}).json()[0]["isPresent"] is True


# --- Accounts ---

def test_student_signup_and_login(client):
    response = client.post("/auth/signup/student", json=STUDENT)
    assert response.status_code == 201
    body = response.json()
    assert body["face_registered"] is False
    assert "face_image" not in body

    login = client.post("/auth/login", json={"email": "ASHA@example.com", "password": STUDENT["password"]})
    assert login.status_code == 200
    assert login.json()["role"] == "student"
    assert login.json()["profile"]["roll_number"] == "CS-017"


def test_duplicate_signup(client):
    client.post("/auth/signup/student", json=STUDENT)
    response = client.post("/auth/signup/student", json=STUDENT)

    assert response.status_code == 409
    assert response.json()["title"] == "User Already Exists"
    assert response.json()["category"] == "conflict"


def test_login_with_wrong_password(client):
    client.post("/auth/signup/student", json=STUDENT)
    response = client.post("/auth/login", json={"email": STUDENT["email"], "password": "nope-nope"})
    assert response.status_code == 401


def test_session_requires_token(client):
    assert client.get("/auth/session").status_code == 401
    assert client.get("/auth/session", headers=auth("made-up")).status_code == 401


def test_session_and_logout(client, student_token):
    session = client.get("/auth/session", headers=auth(student_token))
    assert session.status_code == 200
    assert session.json()["role"] == "student"

    assert client.post("/auth/logout", headers=auth(student_token)).status_code == 200
    assert client.get("/auth/session", headers=auth(student_token)).status_code == 401


# --- Classes, lectures, QR ---

def test_students_cannot_create_classes(client, student_token):
    response = client.post(
        "/classes", json={"name": "DBMS", "department": "CS", "year": "2"}, headers=auth(student_token)
    )
    assert response.status_code == 403


def test_issue_qr_stores_code_on_lecture(client, teacher_token, lecture):
    response = client.post(f"/lectures/{lecture['id']}/qr", json={"location": CLASSROOM}, headers=auth(teacher_token))

    assert response.status_code == 201
    body = response.json()
    assert body["payload"]["lectureId"] == lecture["id"]
    assert body["payload"]["lectureName"] == "Normalization"
    assert body["payload"]["teacherName"] == "Prof. Mehta"
    assert body["expires_at"] == body["payload"]["timestamp"] + 30 * 60 * 1000
    assert body["qr_image"].startswith("data:image/png;base64,")

    stored = client.get(f"/lectures/{lecture['id']}", headers=auth(teacher_token)).json()
    assert stored["qr_code"] == body["qr_text"]


def test_qr_check_near_and_far(client, teacher_token, lecture):
    qr_text = client.post(
        f"/lectures/{lecture['id']}/qr", json={"location": CLASSROOM}, headers=auth(teacher_token)
    ).json()["qr_text"]
    scan = {"qr": qr_text, "roll_number": "CS-017", "password": "secret123"}

    near = client.post("/attendance/qr-check", json={**scan, "location": NEARBY})
    assert near.status_code == 200
    assert near.json()["verified"] is True
    assert near.json()["lecture_id"] == lecture["id"]

    far = client.post("/attendance/qr-check", json={**scan, "location": FAR})
    assert far.status_code == 400
    assert far.json()["title"] == "Location Restriction"
    assert "111 meters" in far.json()["message"]

    denied = client.post("/attendance/qr-check", json={**scan, "location_error": "permission_denied"})
    assert denied.json()["title"] == "Location Error"
    assert denied.json()["category"] == "device"


def test_qr_check_expired_code(client):
    qr_text = encode_qr_payload(build_qr_payload("lec-1", "cls-1", timestamp=0))
    response = client.post("/attendance/qr-check", json={"qr": qr_text, "roll_number": "CS-017", "password": "pw"})

    assert response.status_code == 400
    assert response.json()["title"] == "QR Code Expired"


def test_qr_check_missing_credentials(client):
    qr_text = encode_qr_payload(build_qr_payload("lec-1", "cls-1"))
    response = client.post("/attendance/qr-check", json={"qr": qr_text, "roll_number": " "})

    assert response.status_code == 400
    assert response.json()["message"] == "Please enter your roll number and password"


# --- Face attendance ---

def test_face_attendance_requires_registration(client, student_token, face_image):
    response = client.post(
        "/attendance/face",
        json={"class_id": "cls-1", "lecture_id": "lec-1", "image": face_image},
        headers=auth(student_token),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Face not registered. Please register your face first."
    assert client.get("/attendance", headers=auth(student_token)).json() == []


def test_face_attendance_twice_creates_two_records(client, student_token, face_image):
    registered = client.post("/students/me/face", json={"image": face_image}, headers=auth(student_token))
    assert registered.status_code == 200
    assert registered.json()["face_registered"] is True

    request = {"class_id": "cls-1", "lecture_id": "lec-1", "image": face_image}
    for _ in range(2):
        response = client.post("/attendance/face", json=request, headers=auth(student_token))
        assert response.status_code == 201
        assert response.json()["verification_method"] == "Face Recognition"

    records = client.get("/attendance", headers=auth(student_token)).json()
    assert len(records) == 2
    stats = client.get("/attendance/stats", headers=auth(student_token)).json()
    assert stats == {"present": 2, "absent": 0, "total": 2, "percentage": 100}


def test_face_mismatch(client, student_token, face_image, verifier):
    client.post("/students/me/face", json={"image": face_image}, headers=auth(student_token))
    verifier.is_match = False

    response = client.post(
        "/attendance/face",
        json={"class_id": "cls-1", "lecture_id": "lec-1", "image": face_image},
        headers=auth(student_token),
    )
    assert response.status_code == 400
    assert response.json()["title"] == "Verification Failed"


def test_external_handoff(client, student_token):
    response = client.post(
        "/attendance/external-handoff",
        json={"roll_number": "CS-017", "class_id": "cls-1", "lecture_id": "lec-1"},
    )
    assert response.status_code == 200
    assert response.json()["attendance_data"]["classId"] == "cls-1"
    assert response.json()["student_name"] == "Asha Rao"

    blank = client.post("/attendance/external-handoff", json={"class_id": "cls-1", "lecture_id": "lec-1"})
    assert blank.json()["title"] == "Roll Number Required"

    unknown = client.post(
        "/attendance/external-handoff",
        json={"roll_number": "EE-404", "class_id": "cls-1", "lecture_id": "lec-1"},
    )
    assert unknown.status_code == 404


# --- Teacher tools ---

def test_manual_attendance_and_status_edit(client, teacher_token, student_token, lecture):
    student_id = client.get("/students/me", headers=auth(student_token)).json()["id"]
    body = {"student_id": student_id, "class_id": lecture["class_id"], "lecture_id": lecture["id"], "status": "Absent"}

    created = client.post("/attendance", json=body, headers=auth(teacher_token))
    assert created.status_code == 201
    assert created.json()["verification_method"] == "Manual"

    edited = client.patch(f"/attendance/{created.json()['id']}", json={"status": "Late"}, headers=auth(teacher_token))
    assert edited.status_code == 200
    assert edited.json()["status"] == "Late"

    assert client.patch("/attendance/missing", json={"status": "Late"}, headers=auth(teacher_token)).status_code == 404
    assert client.patch(
        f"/attendance/{created.json()['id']}", json={"status": "Present"}, headers=auth(student_token)
    ).status_code == 403

    listing = client.get(f"/attendance?lecture_id={lecture['id']}", headers=auth(teacher_token)).json()
    assert [r["status"] for r in listing] == ["Late"]


def test_admin_endpoints(client, teacher_token, lecture):
    body = {"student_id": "stu-1", "class_id": lecture["class_id"], "lecture_id": lecture["id"]}
    client.post("/attendance", json=body, headers=auth(teacher_token))

    records = client.get("/admin/attendance", headers=auth(ADMIN_SECRET))
    assert records.status_code == 200
    assert len(records.json()) == 1

    summary = client.get("/admin/attendance_summary", headers=auth(ADMIN_SECRET)).json()
    assert summary["total_present"] == 1
    assert summary["by_student"] == {"stu-1": 1}

    assert client.get("/admin/attendance", headers=auth("wrong")).status_code == 403
