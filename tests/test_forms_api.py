"""
Tests for form template, prefill and submission endpoints
"""
import json
import pytest


SITE_VISIT_FIELDS = [
    {'id': 'claim', 'type': 'text', 'label': 'Claim', 'required': True, 'autoFillFrom': 'claimNo'},
    {'id': 'outcome', 'type': 'select', 'label': 'Outcome', 'required': True,
     'options': ['Repaired', 'Replaced', 'Other']},
    {'id': 'outcome-other', 'type': 'text', 'label': 'Other outcome', 'required': True,
     'dependsOn': 'outcome', 'showWhen': 'Other'},
    {'id': 'cost', 'type': 'number', 'label': 'Cost', 'required': False},
    {'id': 'sig', 'type': 'signature', 'label': 'Signature', 'required': True},
]


@pytest.fixture
def site_visit_form(client, admin_headers):
    response = client.post('/api/forms', headers=admin_headers, json={
        'name': 'Site Visit', 'fields': SITE_VISIT_FIELDS,
    })
    assert response.status_code == 201
    return response.get_json()['form']


def submit(client, headers, job_id, form_id, data):
    return client.post('/api/form-submissions', headers=headers, json={
        'jobId': job_id, 'formId': form_id, 'data': data,
    })


@pytest.mark.integration
class TestFormTemplates:
    """Tests for /api/forms"""

    def test_predefined_forms_are_seeded(self, client, staff_headers):
        forms = client.get('/api/forms', headers=staff_headers).get_json()['forms']
        ids = {f['id'] for f in forms}
        assert 'form-clearance-certificate' in ids
        assert 'noncompliance-form' in ids
        assert len(forms) == 7

    def test_company_restricted_form(self, client, admin_headers, staff_headers):
        client.post('/api/forms', headers=admin_headers, json={
            'name': 'ABSA Only', 'fields': [], 'restrictedToCompanies': ['company-absa'],
        })
        sahl = client.get('/api/forms?companyId=company-sahl', headers=staff_headers).get_json()['forms']
        absa = client.get('/api/forms?companyId=company-absa', headers=staff_headers).get_json()['forms']
        assert 'ABSA Only' not in [f['name'] for f in sahl]
        assert 'ABSA Only' in [f['name'] for f in absa]

    def test_create_from_raw_schema(self, client, admin_headers):
        response = client.post('/api/forms', headers=admin_headers, json={
            'name': 'Raw', 'rawSchema': json.dumps({'fields': [{'type': 'text', 'label': 'Note'}]}),
        })
        assert response.status_code == 201
        assert response.get_json()['form']['fields'][0]['id'] == 'field-1'

    def test_create_with_bad_raw_schema(self, client, admin_headers):
        response = client.post('/api/forms', headers=admin_headers, json={'name': 'Raw', 'rawSchema': '{nope'})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'rawSchema'

    def test_create_requires_name(self, client, admin_headers):
        assert client.post('/api/forms', headers=admin_headers, json={'fields': []}).status_code == 400

    def test_create_and_update_reject_non_string_name(self, client, admin_headers, site_visit_form):
        response = client.post('/api/forms', headers=admin_headers, json={'name': ['Site Visit']})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Fields must be strings: name'
        response = client.put(f"/api/forms/{site_visit_form['id']}", headers=admin_headers, json={'name': 7})
        assert response.status_code == 400

    def test_create_rejects_bad_field_type(self, client, admin_headers):
        response = client.post('/api/forms', headers=admin_headers, json={
            'name': 'Bad', 'fields': [{'type': 'slider', 'label': 'X'}],
        })
        assert response.status_code == 400

    def test_staff_cannot_create(self, client, staff_headers):
        assert client.post('/api/forms', headers=staff_headers, json={'name': 'X'}).status_code == 403

    def test_update_and_delete(self, client, admin_headers, site_visit_form):
        form_id = site_visit_form['id']
        response = client.put(f"/api/forms/{form_id}", headers=admin_headers, json={'name': 'Site Visit v2'})
        assert response.get_json()['form']['name'] == 'Site Visit v2'
        assert client.delete(f"/api/forms/{form_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/forms/{form_id}", headers=admin_headers).status_code == 404


@pytest.mark.integration
class TestPrefill:
    """Tests for auto-filled form values"""

    def test_clearance_certificate_prefill(self, client, staff_headers, make_job):
        job = make_job('staff-1', claimNo='5586306', insuredName='John Smith')
        response = client.get(f"/api/jobs/{job['id']}/forms/form-clearance-certificate/prefill",
                              headers=staff_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['values']['field-cname'] == 'John Smith'
        assert data['values']['field-cref'] == '5586306'
        assert data['values']['field-staff'] == 'Lebo'
        # 'Other' details stay hidden until the select says Other
        assert 'field-oldgeyser-details' not in data['visibleFields']
        assert 'field-oldgeyser' in data['visibleFields']

    def test_prefill_groups_fields_by_section(self, client, staff_headers, make_job, site_visit_form):
        job = make_job('staff-1', claimNo='42')
        response = client.get(f"/api/jobs/{job['id']}/forms/{site_visit_form['id']}/prefill",
                              headers=staff_headers)
        sections = response.get_json()['sections']
        assert sections == {'staff': ['claim', 'outcome', 'outcome-other', 'cost', 'sig'], 'client': []}

    def test_prefill_other_staff_denied(self, client, other_staff_headers, make_job):
        job = make_job('staff-1')
        response = client.get(f"/api/jobs/{job['id']}/forms/form-clearance-certificate/prefill",
                              headers=other_staff_headers)
        assert response.status_code == 403

    def test_prefill_unknown_form(self, client, staff_headers, make_job):
        job = make_job('staff-1')
        response = client.get(f"/api/jobs/{job['id']}/forms/form-nope/prefill", headers=staff_headers)
        assert response.status_code == 404


@pytest.mark.integration
class TestSubmissions:
    """Tests for /api/form-submissions"""

    def test_submit(self, client, staff_headers, make_job, site_visit_form):
        job = make_job('staff-1')
        response = submit(client, staff_headers, job['id'], site_visit_form['id'],
                          {'claim': '5586306', 'outcome': 'Repaired'})
        assert response.status_code == 201
        submission = response.get_json()['submission']
        assert submission['submissionNumber'] == 1
        assert submission['submittedBy'] == 'staff-1'
        assert submission['formType'] == 'Site Visit'

    def test_validation_errors(self, client, staff_headers, make_job, site_visit_form):
        job = make_job('staff-1')
        response = submit(client, staff_headers, job['id'], site_visit_form['id'],
                          {'outcome': 'Other', 'cost': 'lots'})
        assert response.status_code == 400
        errors = response.get_json()['errors']
        assert set(errors) == {'claim', 'outcome-other', 'cost'}

    def test_limit_of_three_per_job_and_form(self, client, staff_headers, make_job, site_visit_form):
        job = make_job('staff-1')
        values = {'claim': '1', 'outcome': 'Replaced'}
        for _ in range(3):
            assert submit(client, staff_headers, job['id'], site_visit_form['id'], values).status_code == 201
        response = submit(client, staff_headers, job['id'], site_visit_form['id'], values)
        assert response.status_code == 400
        assert 'Maximum of 3' in response.get_json()['error']

    def test_submit_missing_ids(self, client, staff_headers):
        assert client.post('/api/form-submissions', headers=staff_headers, json={}).status_code == 400

    def test_submit_unknown_job_or_form(self, client, staff_headers, make_job, site_visit_form):
        job = make_job('staff-1')
        assert submit(client, staff_headers, 'job-nope', site_visit_form['id'], {}).status_code == 404
        assert submit(client, staff_headers, job['id'], 'form-nope', {}).status_code == 404

    def test_submit_for_someone_elses_job(self, client, other_staff_headers, make_job, site_visit_form):
        job = make_job('staff-1')
        response = submit(client, other_staff_headers, job['id'], site_visit_form['id'],
                          {'claim': '1', 'outcome': 'Repaired'})
        assert response.status_code == 403

    def test_list_submissions_scoped_for_staff(self, client, admin_headers, staff_headers,
                                               other_staff_headers, make_job, site_visit_form):
        mine = make_job('staff-1')
        theirs = make_job('staff-2')
        values = {'claim': '1', 'outcome': 'Repaired'}
        submit(client, staff_headers, mine['id'], site_visit_form['id'], values)
        submit(client, other_staff_headers, theirs['id'], site_visit_form['id'], values)

        own = client.get('/api/form-submissions', headers=staff_headers).get_json()['submissions']
        assert [s['jobId'] for s in own] == [mine['id']]
        everything = client.get('/api/form-submissions', headers=admin_headers).get_json()['submissions']
        assert len(everything) == 2
        filtered = client.get(f"/api/form-submissions?jobId={theirs['id']}", headers=admin_headers)
        assert len(filtered.get_json()['submissions']) == 1

    def test_submission_pdf(self, client, staff_headers, make_job, site_visit_form):
        job = make_job('staff-1')
        submission = submit(client, staff_headers, job['id'], site_visit_form['id'],
                            {'claim': '1', 'outcome': 'Repaired', 'sig': 'data:image/png;base64,AAAA'}
                            ).get_json()['submission']

        response = client.get(f"/api/form-submissions/{submission['id']}/pdf", headers=staff_headers)
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert 'Site_Visit-1.pdf' in response.headers['Content-Disposition']

    def test_missing_submission(self, client, staff_headers):
        assert client.get('/api/form-submissions/submission-x', headers=staff_headers).status_code == 404
        assert client.get('/api/form-submissions/submission-x/pdf', headers=staff_headers).status_code == 404
