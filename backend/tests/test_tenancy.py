from sqlalchemy import update

from app.models.school import School


def bootstrap_tenant(client, register_school, slug):
    school, headers = register_school(slug)
    teacher = client.post(
        "/api/v1/auth/register",
        json={
            "full_name": "Same Name",
            "email": "teacher@shared.example.com",
            "password": "password123",
            "role": "teacher",
        },
        headers=headers,
    ).json()
    term = client.post(
        "/api/v1/academic-terms",
        json={"name": "2024-T1", "start_date": "2024-01-08", "end_date": "2024-04-05"},
        headers=headers,
    ).json()
    school_class = client.post("/api/v1/classes", json={"name": "Grade 7", "grade_level": 7}, headers=headers).json()
    subject = client.post("/api/v1/subjects", json={"name": "Science", "code": "SCI"}, headers=headers).json()
    return {
        "school": school,
        "headers": headers,
        "payload": {
            "classId": school_class["id"],
            "subjectId": subject["id"],
            "teacherId": teacher["id"],
            "dayOfWeek": "MONDAY",
            "startTime": "09:00",
            "endTime": "10:00",
            "academicTermId": term["id"],
        },
    }


def test_identical_periods_in_two_tenants_do_not_conflict(client, register_school):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    beta = bootstrap_tenant(client, register_school, "beta")

    first = client.post("/api/v1/timetables", json=alpha["payload"], headers=alpha["headers"])
    second = client.post("/api/v1/timetables", json=beta["payload"], headers=beta["headers"])

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["id"] != second.json()["id"]


def test_periods_of_other_tenant_are_invisible(client, register_school):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    beta = bootstrap_tenant(client, register_school, "beta")
    created = client.post("/api/v1/timetables", json=alpha["payload"], headers=alpha["headers"])
    assert created.status_code == 201

    # Beta reading alpha's class id sees nothing: the class is not beta's.
    foreign_read = client.get(
        f"/api/v1/timetables/class/{alpha['payload']['classId']}",
        params={"termId": alpha["payload"]["academicTermId"]},
        headers=beta["headers"],
    )
    foreign_delete = client.delete(f"/api/v1/timetables/{created.json()['id']}", headers=beta["headers"])
    own_read = client.get(
        f"/api/v1/timetables/teacher/{beta['payload']['teacherId']}",
        params={"termId": beta["payload"]["academicTermId"]},
        headers=beta["headers"],
    )

    assert foreign_read.status_code == 404
    assert foreign_delete.status_code == 404
    assert own_read.status_code == 200
    assert own_read.json() == []


def test_cross_tenant_references_are_not_found(client, register_school):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    beta = bootstrap_tenant(client, register_school, "beta")

    for field, label in (
        ("classId", "Class"),
        ("subjectId", "Subject"),
        ("teacherId", "Teacher"),
        ("academicTermId", "Academic term"),
    ):
        payload = dict(beta["payload"], **{field: alpha["payload"][field]})
        response = client.post("/api/v1/timetables", json=payload, headers=beta["headers"])
        assert response.status_code == 404, field
        assert response.json()["message"] == f"{label} not found"


def test_token_from_one_tenant_is_refused_by_another(client, register_school):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    bootstrap_tenant(client, register_school, "beta")
    mixed_headers = {"Authorization": alpha["headers"]["Authorization"], "X-Tenant-Slug": "beta"}

    response = client.post("/api/v1/timetables", json=alpha["payload"], headers=mixed_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "User does not belong to this school"


def test_missing_or_unknown_tenant_is_rejected(client, register_school):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    auth_only = {"Authorization": alpha["headers"]["Authorization"]}

    no_tenant = client.get("/api/v1/classes", headers=auth_only)
    unknown = client.get("/api/v1/classes", headers={**auth_only, "X-Tenant-Slug": "nowhere"})

    assert no_tenant.status_code == 400
    assert no_tenant.json()["detail"] == "Tenant context missing"
    assert unknown.status_code == 400


def test_inactive_school_is_forbidden(client, register_school, session_factory):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    with session_factory() as db:
        db.execute(update(School).where(School.slug == "alpha").values(is_active=False))
        db.commit()

    response = client.get("/api/v1/classes", headers=alpha["headers"])

    assert response.status_code == 403
    assert response.json()["detail"] == "School account is inactive"


def test_tenant_resolved_from_subdomain(client, register_school):
    alpha = bootstrap_tenant(client, register_school, "alpha")
    auth_only = {"Authorization": alpha["headers"]["Authorization"]}

    response = client.get("http://alpha.schooldesk.example/api/v1/classes", headers=auth_only)

    assert response.status_code == 200
    assert [row["name"] for row in response.json()] == ["Grade 7"]


def test_localhost_falls_back_to_default_school(client, register_school):
    default = bootstrap_tenant(client, register_school, "default-school")
    auth_only = {"Authorization": default["headers"]["Authorization"]}

    response = client.get("http://localhost/api/v1/subjects", headers=auth_only)

    assert response.status_code == 200
    assert [row["code"] for row in response.json()] == ["SCI"]
