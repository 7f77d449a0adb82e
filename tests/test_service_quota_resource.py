# -*- coding: utf-8 -*-
"""ServiceQuotaResource 生命周期测试（botocore Stubber）"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from conftest import quota_response, requested_response
from quota.binding import QuotaBinding
from quota.errors import EmptyResultError, IdentifierFormatError, ServiceQuotaOperationError
from quota.service_quota import GET_QUOTA_ERROR, GET_REQUEST_ERROR, REQUEST_INCREASE_ERROR, ServiceQuotaResource

QUOTA_PARAMS = {'ServiceCode': 'ec2', 'QuotaCode': 'L-1234'}


def _binding(value, request_id=''):
    return QuotaBinding(service_code='ec2', quota_code='L-1234', value=value, id='ec2/L-1234', request_id=request_id)


class TestCreate:

    def test_no_request_when_desired_not_above_current(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(20), QUOTA_PARAMS)
        stubber.add_response('get_service_quota', quota_response(20), QUOTA_PARAMS)

        binding = resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=20))

        assert binding.id == 'ec2/L-1234'
        assert binding.request_id == ''
        assert binding.request_status == ''
        assert binding.value == 20.0

    def test_lower_desired_value_reads_back_current_value(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(50), QUOTA_PARAMS)
        stubber.add_response('get_service_quota', quota_response(50), QUOTA_PARAMS)

        binding = resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=10))

        assert binding.value == 50.0
        assert binding.request_id == ''

    def test_submits_one_request_when_desired_above_current(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response(
            'request_service_quota_increase',
            requested_response('req-1', 'PENDING', 10),
            {'ServiceCode': 'ec2', 'QuotaCode': 'L-1234', 'DesiredValue': 10.0}
        )
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response(
            'get_requested_service_quota_change',
            requested_response('req-1', 'PENDING', 10),
            {'RequestId': 'req-1'}
        )

        binding = resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=10))

        assert binding.request_id == 'req-1'
        assert binding.request_status == 'PENDING'
        # 请求处理中，value 显示期望值而不是当前值
        assert binding.value == 10.0

    def test_get_quota_failure_is_wrapped(self, resource, stubber):
        stubber.add_client_error(
            'get_service_quota',
            service_error_code='AccessDeniedException',
            service_message='not allowed',
            expected_params=QUOTA_PARAMS
        )

        with pytest.raises(ServiceQuotaOperationError) as exc_info:
            resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=10))

        message = str(exc_info.value)
        assert message.startswith(f"{GET_QUOTA_ERROR} (ec2/L-1234): ")
        assert 'not allowed' in message
        assert isinstance(exc_info.value.__cause__, ClientError)

    def test_request_failure_is_wrapped(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_client_error(
            'request_service_quota_increase',
            service_error_code='ResourceAlreadyExistsException',
            service_message='request already open'
        )

        with pytest.raises(ServiceQuotaOperationError) as exc_info:
            resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=10))

        assert str(exc_info.value).startswith(f"{REQUEST_INCREASE_ERROR} (ec2/L-1234)")

    def test_empty_quota_result_is_an_error(self, resource, stubber):
        stubber.add_response('get_service_quota', {}, QUOTA_PARAMS)

        with pytest.raises(EmptyResultError):
            resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=10))

    def test_empty_request_result_is_an_error(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response('request_service_quota_increase', {})

        with pytest.raises(EmptyResultError) as exc_info:
            resource.create(QuotaBinding(service_code='ec2', quota_code='L-1234', value=10))

        assert str(exc_info.value).startswith(REQUEST_INCREASE_ERROR)


class TestRead:

    def test_populates_fields_from_provider(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(42), QUOTA_PARAMS)

        binding = resource.read(QuotaBinding(id='ec2/L-1234'))

        assert binding.service_code == 'ec2'
        assert binding.quota_code == 'L-1234'
        assert binding.value == 42.0

    def test_invalid_id_fails_without_api_call(self, resource, stubber):
        with pytest.raises(IdentifierFormatError):
            resource.read(QuotaBinding(id='invalid'))

    @pytest.mark.parametrize('status', ['APPROVED', 'CASE_CLOSED', 'DENIED', 'NOT_APPROVED', 'INVALID_REQUEST'])
    def test_terminal_status_clears_request_id(self, resource, stubber, status):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response(
            'get_requested_service_quota_change',
            requested_response('req-1', status, 10),
            {'RequestId': 'req-1'}
        )

        binding = resource.read(_binding(10, request_id='req-1'))

        assert binding.request_id == ''
        assert binding.request_status == status
        assert binding.value == 5.0

    def test_approved_request_reports_new_value(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(10), QUOTA_PARAMS)
        stubber.add_response(
            'get_requested_service_quota_change',
            requested_response('req-1', 'APPROVED', 10),
            {'RequestId': 'req-1'}
        )

        binding = resource.read(_binding(10, request_id='req-1'))

        assert binding.request_id == ''
        assert binding.request_status == 'APPROVED'
        assert binding.value == 10.0

    @pytest.mark.parametrize('status', ['PENDING', 'CASE_OPENED'])
    def test_in_progress_status_keeps_request_and_shows_desired_value(self, resource, stubber, status):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response(
            'get_requested_service_quota_change',
            requested_response('req-1', status, 25),
            {'RequestId': 'req-1'}
        )

        binding = resource.read(_binding(25, request_id='req-1'))

        assert binding.request_id == 'req-1'
        assert binding.request_status == status
        assert binding.value == 25.0

    def test_missing_request_clears_request_fields(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_client_error(
            'get_requested_service_quota_change',
            service_error_code='NoSuchResourceException',
            service_message='request not found',
            expected_params={'RequestId': 'req-1'}
        )

        binding = _binding(25, request_id='req-1')
        binding.request_status = 'PENDING'
        resource.read(binding)

        assert binding.request_id == ''
        assert binding.request_status == ''
        assert binding.value == 5.0

    def test_other_request_lookup_error_is_wrapped_with_request_id(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_client_error(
            'get_requested_service_quota_change',
            service_error_code='TooManyRequestsException',
            service_message='slow down',
            expected_params={'RequestId': 'req-1'}
        )

        with pytest.raises(ServiceQuotaOperationError) as exc_info:
            resource.read(_binding(25, request_id='req-1'))

        assert str(exc_info.value).startswith(f"{GET_REQUEST_ERROR} (req-1): ")

    def test_empty_request_lookup_result_is_an_error(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response('get_requested_service_quota_change', {}, {'RequestId': 'req-1'})

        with pytest.raises(EmptyResultError):
            resource.read(_binding(25, request_id='req-1'))

    def test_no_status_lookup_without_request_id(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)

        binding = resource.read(_binding(25))

        assert binding.request_status == ''

    def test_unknown_status_is_recorded_without_mutation(self):
        client = MagicMock()
        client.get_service_quota.return_value = {'service_code': 'ec2', 'quota_code': 'L-1234', 'value': 5.0}
        client.get_requested_service_quota_change.return_value = {
            'id': 'req-1', 'status': 'SOMETHING_NEW', 'desired_value': 25.0
        }

        binding = ServiceQuotaResource(client).read(_binding(25, request_id='req-1'))

        assert binding.request_status == 'SOMETHING_NEW'
        assert binding.request_id == 'req-1'
        assert binding.value == 5.0


class TestUpdate:

    def test_submits_request_when_desired_above_current(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response(
            'request_service_quota_increase',
            requested_response('req-2', 'CASE_OPENED', 30),
            {'ServiceCode': 'ec2', 'QuotaCode': 'L-1234', 'DesiredValue': 30.0}
        )
        stubber.add_response('get_service_quota', quota_response(5), QUOTA_PARAMS)
        stubber.add_response(
            'get_requested_service_quota_change',
            requested_response('req-2', 'CASE_OPENED', 30),
            {'RequestId': 'req-2'}
        )

        binding = resource.update(_binding(30))

        assert binding.request_id == 'req-2'
        assert binding.request_status == 'CASE_OPENED'
        assert binding.value == 30.0

    def test_no_request_when_desired_not_above_current(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(30), QUOTA_PARAMS)
        stubber.add_response('get_service_quota', quota_response(30), QUOTA_PARAMS)

        binding = resource.update(_binding(10))

        assert binding.request_id == ''
        assert binding.value == 30.0

    def test_invalid_id_fails_without_api_call(self, resource, stubber):
        with pytest.raises(IdentifierFormatError):
            resource.update(QuotaBinding(id='ec2/', value=10))


class TestDeleteAndImport:

    def test_delete_never_calls_the_api(self, resource, stubber):
        # Stubber 没有任何排队的响应，任何 API 调用都会报错
        assert resource.delete(_binding(10, request_id='req-1')) is None

    def test_delete_accepts_any_binding(self, resource, stubber):
        resource.delete(QuotaBinding())

    def test_import_passes_identifier_through(self, resource, stubber):
        stubber.add_response('get_service_quota', quota_response(7, 'vpc', 'L-F678F1CE'),
                             {'ServiceCode': 'vpc', 'QuotaCode': 'L-F678F1CE'})

        binding = resource.import_state('vpc/L-F678F1CE')
        assert binding.id == 'vpc/L-F678F1CE'
        assert binding.service_code == ''

        resource.read(binding)
        assert binding.service_code == 'vpc'
        assert binding.quota_code == 'L-F678F1CE'
        assert binding.value == 7.0
