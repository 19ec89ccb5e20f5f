"""
Tests for the in-memory repositories
"""
import pytest
from services.users_repository import UsersRepository, merge_schedule, resolve_schedule
from services.jobs_repository import JobsRepository
from services.forms_repository import FormsRepository, column_name
from services.photos_repository import PhotosRepository
from validators import ValidationError


@pytest.fixture
def users():
    return UsersRepository(hash_method='pbkdf2:sha256:1000')


@pytest.fixture
def jobs():
    return JobsRepository()


@pytest.fixture
def forms():
    return FormsRepository(max_submissions_per_form=3)


@pytest.mark.unit
class TestUsersRepository:
    """Tests for user storage and password checks"""

    def test_create_user_hides_password_hash(self, users):
        user = users.create_user({'username': 'thabo', 'password': 'secret1', 'name': 'Thabo'})
        assert 'passwordHash' not in user
        assert 'password' not in user
        assert user['role'] == 'staff'
        assert user['id'].startswith('user-')

    def test_duplicate_username_rejected(self, users):
        users.create_user({'username': 'thabo', 'password': 'x', 'name': 'Thabo'})
        with pytest.raises(ValidationError):
            users.create_user({'username': 'THABO', 'password': 'y', 'name': 'Other'})

    def test_verify_password(self, users):
        users.create_user({'username': 'thabo', 'password': 'secret1', 'name': 'Thabo'})
        assert users.verify_password('Thabo', 'secret1')['username'] == 'thabo'
        assert users.verify_password('thabo', 'wrong') is None
        assert users.verify_password('nobody', 'secret1') is None

    def test_update_password(self, users):
        user = users.create_user({'username': 'thabo', 'password': 'old', 'name': 'Thabo'})
        users.update_user(user['id'], {'password': 'new'})
        assert users.verify_password('thabo', 'old') is None
        assert users.verify_password('thabo', 'new') is not None

    def test_list_by_role_and_count(self, users):
        users.create_user({'username': 'b', 'password': 'x', 'name': 'B', 'role': 'admin'})
        users.create_user({'username': 'a', 'password': 'x', 'name': 'A'})
        assert [u['username'] for u in users.list_users()] == ['a', 'b']
        assert users.count(role='admin') == 1

    def test_delete_user(self, users):
        user = users.create_user({'username': 'a', 'password': 'x', 'name': 'A'})
        assert users.delete_user(user['id']) is True
        assert users.delete_user(user['id']) is False
        assert users.get_user(user['id']) is None


@pytest.mark.unit
class TestScheduleDefaults:
    """Tests for shift defaults"""

    def test_normal_week(self):
        schedule = resolve_schedule(None)
        assert schedule['shiftStartTime'] == '05:00'
        assert schedule['shiftEndTime'] == '16:00'
        assert schedule['weekType'] == 'normal'
        assert schedule['workingLateShift'] is False

    def test_late_week(self):
        schedule = resolve_schedule({'workingLateShift': True})
        assert schedule['shiftEndTime'] == '19:00'
        assert schedule['weekType'] == 'late'

    def test_explicit_times_kept(self):
        schedule = resolve_schedule({'shiftStartTime': '07:00', 'shiftEndTime': '15:00'})
        assert schedule['shiftStartTime'] == '07:00'
        assert schedule['shiftEndTime'] == '15:00'

    def test_turning_late_shift_off(self, users):
        user = users.create_user({'username': 'thabo', 'password': 'x', 'name': 'Thabo',
                                  'schedule': {'workingLateShift': True}})
        assert user['schedule']['shiftEndTime'] == '19:00'

        updated = users.update_user(user['id'], {'schedule': {'workingLateShift': False}})
        assert updated['schedule'] == {
            'workingLateShift': False, 'weekType': 'normal',
            'shiftStartTime': '05:00', 'shiftEndTime': '16:00',
        }

    def test_week_type_drives_late_shift(self):
        current = resolve_schedule({'workingLateShift': True})
        schedule = merge_schedule(current, {'weekType': 'normal'})
        assert schedule['workingLateShift'] is False
        assert schedule['shiftEndTime'] == '16:00'

    def test_explicit_end_time_survives_toggle(self):
        schedule = merge_schedule(resolve_schedule(None), {'workingLateShift': True, 'shiftEndTime': '18:30'})
        assert schedule['weekType'] == 'late'
        assert schedule['shiftEndTime'] == '18:30'

    def test_unrelated_change_keeps_shift(self):
        schedule = merge_schedule(resolve_schedule({'workingLateShift': True}), {'shiftStartTime': '06:00'})
        assert schedule['shiftStartTime'] == '06:00'
        assert schedule['shiftEndTime'] == '19:00'
        assert schedule['weekType'] == 'late'


@pytest.mark.unit
class TestJobsRepository:
    """Tests for job storage"""

    def test_job_numbers_are_sequential(self, jobs):
        first = jobs.create_job({'title': 'One', 'assignedTo': 'staff-1'}, assigned_by='admin-1')
        second = jobs.create_job({'title': 'Two', 'assignedTo': 'staff-1'}, assigned_by='admin-1')
        assert (first['jobNumber'], second['jobNumber']) == (1, 2)

    def test_job_numbers_not_reused_after_delete(self, jobs):
        first = jobs.create_job({'title': 'One', 'assignedTo': 'staff-1'}, assigned_by='admin-1')
        jobs.delete_job(first['id'])
        second = jobs.create_job({'title': 'Two', 'assignedTo': 'staff-1'}, assigned_by='admin-1')
        assert second['jobNumber'] == 2

    def test_defaults(self, jobs):
        job = jobs.create_job({'title': '  Leak  ', 'assignedTo': 'staff-1'}, assigned_by='admin-1')
        assert job['title'] == 'Leak'
        assert job['status'] == 'pending'
        assert job['priority'] == 'medium'
        assert job['assignedBy'] == 'admin-1'
        assert job['formIds'] == []

    def test_single_form_id_becomes_list(self, jobs):
        job = jobs.create_job({'title': 'A', 'assignedTo': 'staff-1', 'formId': 'form-x'}, assigned_by='admin-1')
        assert job['formIds'] == ['form-x']

    def test_claim_fields_stored_under_both_keys(self, jobs):
        job = jobs.create_job(
            {'title': 'A', 'assignedTo': 'staff-1', 'PolicyNo': 'P-9'},
            assigned_by='admin-1',
            parsed={'claimNo': '5586306'},
        )
        assert job['claimNo'] == job['ClaimNo'] == '5586306'
        assert job['policyNo'] == job['PolicyNo'] == 'P-9'

    def test_due_date_normalized(self, jobs):
        job = jobs.create_job({'title': 'A', 'assignedTo': 's', 'dueDate': '2024-03-05'}, assigned_by='a')
        assert job['dueDate'] == '2024-03-05'

    def test_unparseable_due_date_kept(self, jobs):
        job = jobs.create_job({'title': 'A', 'assignedTo': 's', 'dueDate': 'next week-ish'}, assigned_by='a')
        assert job['dueDate'] == 'next week-ish'

    def test_list_filters(self, jobs):
        jobs.create_job({'title': 'A', 'assignedTo': 'staff-1'}, assigned_by='a')
        b = jobs.create_job({'title': 'B', 'assignedTo': 'staff-2'}, assigned_by='a')
        jobs.update_job(b['id'], {'status': 'completed'})
        assert [j['title'] for j in jobs.list_jobs(assigned_to='staff-1')] == ['A']
        assert [j['title'] for j in jobs.list_jobs(status='completed')] == ['B']

    def test_update_missing_job(self, jobs):
        assert jobs.update_job('job-nope', {'status': 'completed'}) is None

    def test_find_existing(self, jobs):
        jobs.create_job({'title': 'A', 'assignedTo': 's', 'claimNo': 'ABC1'}, assigned_by='a')
        assert jobs.find_existing(claim_no=' abc1 ')['title'] == 'A'
        assert jobs.find_existing(policy_no='nothing') is None
        assert jobs.find_existing() is None

    def test_stats(self, jobs):
        jobs.create_job({'title': 'A', 'assignedTo': 's'}, assigned_by='a')
        b = jobs.create_job({'title': 'B', 'assignedTo': 's'}, assigned_by='a')
        jobs.update_job(b['id'], {'status': 'in_progress'})
        assert jobs.stats() == {'totalJobs': 2, 'pendingJobs': 1, 'inProgressJobs': 1, 'completedJobs': 0}

    def test_returned_jobs_are_copies(self, jobs):
        job = jobs.create_job({'title': 'A', 'assignedTo': 's'}, assigned_by='a')
        job['title'] = 'changed'
        assert jobs.get_job(job['id'])['title'] == 'A'


@pytest.mark.unit
class TestFormsRepository:
    """Tests for form templates and submissions"""

    def test_column_name(self):
        assert column_name('field-claim.no') == 'field_claim_no'

    def test_load_templates_skips_known_ids(self, forms):
        assert forms.load_templates([{'id': 'f1', 'name': 'A', 'fields': []}]) == 1
        assert forms.load_templates([{'id': 'f1', 'name': 'A', 'fields': []}]) == 0
        assert forms.get_form('f1')['isTemplate'] is True

    def test_create_form_generates_field_ids(self, forms):
        form = forms.create_form({'name': 'Check', 'fields': [
            {'type': 'text', 'label': 'A'}, {'type': 'text', 'label': 'B'},
        ]}, created_by='admin-1')
        assert [f['id'] for f in form['fields']] == ['field-1', 'field-2']
        assert form['fields'][0]['required'] is False

    def test_company_restriction(self, forms):
        forms.load_templates([
            {'id': 'open', 'name': 'Open', 'fields': []},
            {'id': 'absa', 'name': 'ABSA', 'fields': [], 'restrictedToCompanies': ['company-absa']},
        ])
        assert {f['id'] for f in forms.list_forms('company-sahl')} == {'open'}
        assert {f['id'] for f in forms.list_forms('company-absa')} == {'open', 'absa'}
        assert len(forms.list_forms()) == 2

    def test_pdf_links(self, forms):
        forms.load_templates([{'id': 'f1', 'name': 'A', 'fields': []}])
        forms.set_pdf_template('f1', 'old.pdf')
        assert forms.repoint_pdf('old.pdf', 'new.pdf') == 1
        assert forms.get_form('f1')['pdfTemplate'] == 'new.pdf'
        assert [f['id'] for f in forms.forms_using_pdf('new.pdf')] == ['f1']
        forms.set_pdf_template('f1', None)
        assert 'pdfTemplate' not in forms.get_form('f1')

    def test_field_mappings(self, forms):
        forms.load_templates([{'id': 'f1', 'name': 'A', 'fields': [
            {'id': 'cn', 'type': 'text', 'label': 'Claim', 'autoFillFrom': 'claimNo'},
        ]}])
        form = forms.update_field_mappings('f1', [
            {'formFieldId': 'cn', 'autoFillFrom': '', 'required': True},
            {'formFieldId': 'unknown', 'required': True},
        ])
        assert 'autoFillFrom' not in form['fields'][0]
        assert form['fields'][0]['required'] is True

    def test_submission_numbering_and_limit(self, forms):
        forms.load_templates([{'id': 'f1', 'name': 'Clearance', 'fields': []}])
        numbers = [
            forms.create_submission('job-1', 'f1', 'staff-1', {'a': i})['submissionNumber']
            for i in range(3)
        ]
        assert numbers == [1, 2, 3]
        with pytest.raises(ValidationError):
            forms.create_submission('job-1', 'f1', 'staff-1', {})
        # another job has its own allowance
        assert forms.create_submission('job-2', 'f1', 'staff-1', {})['submissionNumber'] == 1

    def test_submission_form_type(self, forms):
        forms.load_templates([{'id': 'f1', 'name': 'Clearance', 'fields': []}])
        submission = forms.create_submission('job-1', 'f1', 'staff-1', {}, signature={'data': 'x'})
        assert submission['formType'] == 'Clearance'
        assert submission['signature'] == {'data': 'x'}
        assert forms.get_submission(submission['id'])['jobId'] == 'job-1'


@pytest.mark.unit
class TestPhotosRepository:
    """Tests for photo records"""

    def test_default_labels_count_up(self):
        photos = PhotosRepository(max_per_job=13)
        user = {'id': 'staff-1', 'name': 'Lebo'}
        first = photos.add_photo('p1', 'job-1', 'http://x/1', 'k1', user)
        second = photos.add_photo('p2', 'job-1', 'http://x/2', 'k2', user, label='  Ceiling  ')
        assert first['label'] == 'Photo 1'
        assert second['label'] == 'Ceiling'
        assert first['uploadedByName'] == 'Lebo'

    def test_capacity(self):
        photos = PhotosRepository(max_per_job=2)
        user = {'id': 'staff-1'}
        photos.add_photo('p1', 'job-1', 'u', 'k', user)
        photos.add_photo('p2', 'job-1', 'u', 'k', user)
        with pytest.raises(ValidationError) as exc:
            photos.add_photo('p3', 'job-1', 'u', 'k', user)
        assert exc.value.message == 'Maximum 2 photos per job'
        photos.ensure_capacity('job-2')

    def test_label_and_delete(self):
        photos = PhotosRepository()
        photos.add_photo('p1', 'job-1', 'u', 'k1', {'id': 's'})
        assert photos.update_label('p1', ' Geyser ')['label'] == 'Geyser'
        assert photos.delete_photo('p1')['publicId'] == 'k1'
        assert photos.delete_photo('p1') is None
        assert photos.list_photos('job-1') == []
