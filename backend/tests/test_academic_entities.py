def create_term(client, headers, name, start, end, is_active=False):
    response = client.post(
        "/api/v1/academic-terms",
        json={"name": name, "start_date": start, "end_date": end, "is_active": is_active},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_term_activation_keeps_a_single_current_term(client, register_school):
    _, headers = register_school("lakeside")
    first = create_term(client, headers, "2024-T1", "2024-01-08", "2024-04-05", is_active=True)
    second = create_term(client, headers, "2024-T2", "2024-05-06", "2024-08-02")

    current = client.get("/api/v1/academic-terms/current", headers=headers)
    assert current.json()["id"] == first["id"]

    activated = client.patch(f"/api/v1/academic-terms/{second['id']}/activate", headers=headers)
    assert activated.status_code == 200
    assert activated.json()["is_active"] is True

    terms = client.get("/api/v1/academic-terms", headers=headers).json()
    assert [term["name"] for term in terms] == ["2024-T2", "2024-T1"]
    assert [term["is_active"] for term in terms] == [True, False]


def test_current_term_missing(client, register_school):
    _, headers = register_school("lakeside")

    response = client.get("/api/v1/academic-terms/current", headers=headers)

    assert response.status_code == 404


def test_term_dates_are_validated(client, register_school):
    _, headers = register_school("lakeside")
    term = create_term(client, headers, "2024-T1", "2024-01-08", "2024-04-05")

    inverted_create = client.post(
        "/api/v1/academic-terms",
        json={"name": "Backwards", "start_date": "2024-04-05", "end_date": "2024-01-08"},
        headers=headers,
    )
    inverted_update = client.put(
        f"/api/v1/academic-terms/{term['id']}",
        json={"end_date": "2023-12-01"},
        headers=headers,
    )
    renamed = client.put(f"/api/v1/academic-terms/{term['id']}", json={"name": "Term One"}, headers=headers)

    assert inverted_create.status_code == 400
    assert inverted_update.status_code == 400
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Term One"
    assert renamed.json()["end_date"] == "2024-04-05"


def test_class_references_must_belong_to_school(client, register_school):
    _, alpha_headers = register_school("alpha")
    _, beta_headers = register_school("beta")
    foreign_teacher = client.post(
        "/api/v1/auth/register",
        json={
            "full_name": "Beta Teacher",
            "email": "teacher@beta.example.com",
            "password": "password123",
            "role": "teacher",
        },
        headers=beta_headers,
    ).json()
    foreign_term = create_term(client, beta_headers, "2024-T1", "2024-01-08", "2024-04-05")

    with_teacher = client.post(
        "/api/v1/classes",
        json={"name": "Grade 5", "grade_level": 5, "teacher_id": foreign_teacher["id"]},
        headers=alpha_headers,
    )
    with_term = client.post(
        "/api/v1/classes",
        json={"name": "Grade 5", "grade_level": 5, "academic_term_id": foreign_term["id"]},
        headers=alpha_headers,
    )
    out_of_range = client.post("/api/v1/classes", json={"name": "Grade 13", "grade_level": 13}, headers=alpha_headers)

    assert with_teacher.status_code == 404
    assert with_teacher.json()["detail"] == "Teacher not found"
    assert with_term.status_code == 404
    assert out_of_range.status_code == 400


def test_class_update_and_listing(client, register_school):
    _, headers = register_school("lakeside")
    created = client.post("/api/v1/classes", json={"name": "Grade 2", "grade_level": 2}, headers=headers).json()
    client.post("/api/v1/classes", json={"name": "Grade 1", "grade_level": 1}, headers=headers)

    updated = client.put(f"/api/v1/classes/{created['id']}", json={"name": "Grade 2B"}, headers=headers)
    listed = client.get("/api/v1/classes", headers=headers).json()

    assert updated.status_code == 200
    assert updated.json()["grade_level"] == 2
    assert [row["name"] for row in listed] == ["Grade 1", "Grade 2B"]


def test_subject_codes_are_unique_per_school(client, register_school):
    _, alpha_headers = register_school("alpha")
    _, beta_headers = register_school("beta")

    first = client.post("/api/v1/subjects", json={"name": "Mathematics", "code": "math"}, headers=alpha_headers)
    duplicate = client.post("/api/v1/subjects", json={"name": "Maths", "code": "MATH"}, headers=alpha_headers)
    other_school = client.post("/api/v1/subjects", json={"name": "Mathematics", "code": "MATH"}, headers=beta_headers)

    assert first.status_code == 201
    assert first.json()["code"] == "MATH"
    assert duplicate.status_code == 409
    assert other_school.status_code == 201

    english = client.post("/api/v1/subjects", json={"name": "English", "code": "ENG"}, headers=alpha_headers).json()
    clash = client.put(f"/api/v1/subjects/{english['id']}", json={"code": "math"}, headers=alpha_headers)
    assert clash.status_code == 409


def test_only_admin_manages_academic_entities(client, register_school):
    _, admin_headers = register_school("lakeside")
    client.post(
        "/api/v1/auth/register",
        json={
            "full_name": "Secretary Banda",
            "email": "office@lakeside.example.com",
            "password": "password123",
            "role": "secretary",
        },
        headers=admin_headers,
    )
    login = client.post(
        "/api/v1/auth/login",
        json={"email": "office@lakeside.example.com", "password": "password123"},
        headers={"X-Tenant-Slug": "lakeside"},
    )
    secretary_headers = {"Authorization": f"Bearer {login.json()['access_token']}", "X-Tenant-Slug": "lakeside"}

    create = client.post("/api/v1/subjects", json={"name": "History", "code": "HIS"}, headers=secretary_headers)
    read = client.get("/api/v1/subjects", headers=secretary_headers)

    assert create.status_code == 403
    assert read.status_code == 200


def test_deleting_class_or_subject_removes_its_periods(client, register_school):
    _, headers = register_school("lakeside")
    teacher = client.post(
        "/api/v1/auth/register",
        json={
            "full_name": "Grace Tembo",
            "email": "grace@lakeside.example.com",
            "password": "password123",
            "role": "teacher",
        },
        headers=headers,
    ).json()
    term = create_term(client, headers, "2024-T1", "2024-01-08", "2024-04-05")
    grade_4 = client.post("/api/v1/classes", json={"name": "Grade 4", "grade_level": 4}, headers=headers).json()
    grade_5 = client.post("/api/v1/classes", json={"name": "Grade 5", "grade_level": 5}, headers=headers).json()
    science = client.post("/api/v1/subjects", json={"name": "Science", "code": "SCI"}, headers=headers).json()
    base = {
        "subjectId": science["id"],
        "teacherId": teacher["id"],
        "dayOfWeek": "TUESDAY",
        "academicTermId": term["id"],
    }
    client.post(
        "/api/v1/timetables",
        json={**base, "classId": grade_4["id"], "startTime": "08:00", "endTime": "09:00"},
        headers=headers,
    )

    deleted_class = client.delete(f"/api/v1/classes/{grade_4['id']}", headers=headers)
    assert deleted_class.status_code == 204
    # The teacher's slot is free again once the class is gone.
    rebooked = client.post(
        "/api/v1/timetables",
        json={**base, "classId": grade_5["id"], "startTime": "08:00", "endTime": "09:00"},
        headers=headers,
    )
    assert rebooked.status_code == 201

    deleted_subject = client.delete(f"/api/v1/subjects/{science['id']}", headers=headers)
    assert deleted_subject.status_code == 204
    remaining = client.get(
        f"/api/v1/timetables/teacher/{teacher['id']}",
        params={"termId": term["id"]},
        headers=headers,
    )
    assert remaining.json() == []
