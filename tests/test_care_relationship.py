"""Test RD patient lookup and assignment, through the API and the service."""
import pytest

from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from database import models
from services import care_relationship


def test_lookup_normalizes_email(make_account, client_for):
    """Lookup trims and lower-cases the email before matching."""
    patient = make_account("jane@example.com", full_name="Jane Doe")
    rd = make_account("rd@example.com", role="rd")

    resp = client_for(rd).post("/api/rd/lookup-patient", json={"email": "  Jane@Example.COM "})
    assert resp.status_code == 200
    assert resp.json() == {"id": patient.id, "full_name": "Jane Doe", "email": "jane@example.com"}


def test_lookup_requires_session(client):
    resp = client.post("/api/rd/lookup-patient", json={"email": "jane@example.com"})
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Unauthorized"


def test_lookup_rejects_patient_caller_before_validating(make_account, client_for):
    """A patient gets 403 even when the body is empty."""
    patient = make_account("pat@example.com")
    resp = client_for(patient).post("/api/rd/lookup-patient", json={})
    assert resp.status_code == 403


def test_patient_with_malformed_body_still_gets_403(make_account, client_for):
    """The role check runs before any field is looked at."""
    patient = make_account("pat@example.com")
    c = client_for(patient)
    assert c.post("/api/rd/assign-patient", json={"patient_id": "abc"}).status_code == 403
    assert c.post("/api/rd/lookup-patient", json={"email": 5}).status_code == 403
    assert c.post("/api/rd/lookup-patient", json=["not", "an", "object"]).status_code == 403


def test_rd_with_malformed_fields_gets_400(make_account, client_for):
    rd = make_account("rd@example.com", role="rd")
    c = client_for(rd)

    resp = c.post("/api/rd/assign-patient", json={"patient_id": "abc"})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "patient_id must be an integer"
    assert c.post("/api/rd/assign-patient", json={"patient_id": True}).status_code == 400
    assert c.post("/api/rd/assign-patient", json=[1]).status_code == 400

    resp = c.post("/api/rd/lookup-patient", json={"email": 5})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == {"field": "email"}


def test_assign_accepts_numeric_string_id(make_account, client_for):
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")
    resp = client_for(rd).post("/api/rd/assign-patient", json={"patient_id": str(patient.id)})
    assert resp.status_code == 200


def test_lookup_missing_email_is_400(make_account, client_for):
    rd = make_account("rd@example.com", role="rd")
    resp = client_for(rd).post("/api/rd/lookup-patient", json={"email": "   "})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Email is required"


def test_lookup_unknown_email_is_404(make_account, client_for):
    rd = make_account("rd@example.com", role="rd")
    resp = client_for(rd).post("/api/rd/lookup-patient", json={"email": "ghost@example.com"})
    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "No patient found with that email address"


def test_lookup_never_returns_non_patient_accounts(make_account, client_for):
    make_account("other.rd@example.com", role="rd")
    make_account("admin@example.com", role="admin")
    rd = make_account("rd@example.com", role="rd")
    c = client_for(rd)
    assert c.post("/api/rd/lookup-patient", json={"email": "other.rd@example.com"}).status_code == 404
    assert c.post("/api/rd/lookup-patient", json={"email": "admin@example.com"}).status_code == 404


def test_lookup_reports_unknown_name(db, make_account):
    patient = make_account("anon@example.com", full_name="")
    rd = make_account("rd@example.com", role="rd")
    result = care_relationship.lookup_patient_by_email(db, rd, "anon@example.com")
    assert result == {"id": patient.id, "full_name": "Unknown", "email": "anon@example.com"}


def test_assign_patient_creates_active_assignment(db, make_account, client_for):
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")

    resp = client_for(rd).post("/api/rd/assign-patient", json={"patient_id": patient.id})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    assignment = db.query(models.RDPatientAssignment).one()
    assert (assignment.rd_id, assignment.patient_id, assignment.status) == (rd.id, patient.id, "active")


def test_assign_already_active_is_409(make_account, client_for):
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")
    c = client_for(rd)
    c.post("/api/rd/assign-patient", json={"patient_id": patient.id})

    resp = c.post("/api/rd/assign-patient", json={"patient_id": patient.id})
    assert resp.status_code == 409
    assert resp.json()["error"]["message"] == "This patient is already assigned to you"


def test_assign_reactivates_discharged_assignment(db, make_account, client_for):
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")
    c = client_for(rd)
    c.post("/api/rd/assign-patient", json={"patient_id": patient.id})
    assert c.patch(f"/rd/patients/{patient.id}/assignment", json={"status": "discharged"}).status_code == 200

    resp = c.post("/api/rd/assign-patient", json={"patient_id": patient.id})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "reactivated": True}

    rows = db.query(models.RDPatientAssignment).all()
    assert len(rows) == 1
    assert rows[0].status == "active"


def test_assign_error_ordering(make_account, client, client_for):
    """401 before 403 before 400 before 404."""
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")

    assert client.post("/api/rd/assign-patient", json={}).status_code == 401
    assert client_for(patient).post("/api/rd/assign-patient", json={}).status_code == 403

    c = client_for(rd)
    resp = c.post("/api/rd/assign-patient", json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "patient_id is required"
    assert c.post("/api/rd/assign-patient", json={"patient_id": 99999}).status_code == 404


def test_assign_rejects_non_patient_target(db, make_account):
    rd = make_account("rd@example.com", role="rd")
    other_rd = make_account("rd2@example.com", role="rd")
    with pytest.raises(NotFoundError) as exc_info:
        care_relationship.assign_patient(db, rd, other_rd.id)
    assert exc_info.value.status_code == 404


def test_admin_may_assign_patients(db, make_account):
    patient = make_account("pat@example.com")
    admin = make_account("admin@example.com", role="admin")
    assignment, reactivated = care_relationship.assign_patient(db, admin, patient.id)
    assert assignment.status == "active"
    assert reactivated is False


def test_service_checks_role_first(db, make_account):
    patient = make_account("pat@example.com")
    with pytest.raises(ForbiddenError):
        care_relationship.lookup_patient_by_email(db, patient, None)
    with pytest.raises(ForbiddenError):
        care_relationship.assign_patient(db, patient, None)


def test_service_missing_inputs(db, make_account):
    rd = make_account("rd@example.com", role="rd")
    with pytest.raises(ValidationError) as exc_info:
        care_relationship.assign_patient(db, rd, None)
    assert exc_info.value.details == {"field": "patient_id"}
    with pytest.raises(ValidationError):
        care_relationship.lookup_patient_by_email(db, rd, "")


def test_service_conflict_on_second_active_assignment(db, make_account):
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")
    care_relationship.assign_patient(db, rd, patient.id)
    with pytest.raises(ConflictError) as exc_info:
        care_relationship.assign_patient(db, rd, patient.id)
    assert exc_info.value.status_code == 409


def test_losing_concurrent_insert_is_conflict(db, make_account, monkeypatch):
    """A row created between the existence check and the insert trips the
    unique constraint, which is reported as a conflict."""
    patient = make_account("pat@example.com")
    rd = make_account("rd@example.com", role="rd")
    care_relationship.assign_patient(db, rd, patient.id)

    monkeypatch.setattr(care_relationship, "_get_assignment", lambda *args: None)
    with pytest.raises(ConflictError) as exc_info:
        care_relationship.assign_patient(db, rd, patient.id)
    assert exc_info.value.message == "This patient is already assigned to you"

    monkeypatch.undo()
    assert db.query(models.RDPatientAssignment).count() == 1


def test_two_rds_may_hold_the_same_patient(db, make_account):
    patient = make_account("pat@example.com")
    rd1 = make_account("rd1@example.com", role="rd")
    rd2 = make_account("rd2@example.com", role="rd")
    care_relationship.assign_patient(db, rd1, patient.id)
    care_relationship.assign_patient(db, rd2, patient.id)
    assert care_relationship.active_patient_ids(db, rd1.id) == [patient.id]
    assert care_relationship.active_patient_ids(db, rd2.id) == [patient.id]


def test_list_assignments_includes_every_status(make_account, client_for):
    p1 = make_account("p1@example.com", full_name="Ann")
    p2 = make_account("p2@example.com", full_name="Ben")
    rd = make_account("rd@example.com", role="rd")
    c = client_for(rd)
    c.post("/api/rd/assign-patient", json={"patient_id": p1.id})
    c.post("/api/rd/assign-patient", json={"patient_id": p2.id})
    c.patch(f"/rd/patients/{p2.id}/assignment", json={"status": "paused"})

    resp = c.get("/rd/patients")
    assert resp.status_code == 200
    statuses = {row["full_name"]: row["status"] for row in resp.json()}
    assert statuses == {"Ann": "active", "Ben": "paused"}
