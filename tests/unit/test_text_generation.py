"""
Unit tests for the text generation client and helpers (HTTP layer mocked).
"""

import json
import pytest
import requests
from unittest.mock import MagicMock, patch

from bizdesk.exceptions import BusinessLogicError, TextGenerationError
from bizdesk.services import text_generation_service


def _reply(content):
    """Fake chat-completions HTTP response carrying ``content`` as the message."""
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        'choices': [{'message': {'content': json.dumps(content) if not isinstance(content, str) else content}}]
    }
    return response


@pytest.fixture
def mock_post(app):
    with patch('bizdesk.services.text_generation_service.requests.post') as post:
        yield post


class TestClient:
    """Transport and parsing."""

    def test_sends_prompt_with_bearer_token(self, app, mock_post):
        mock_post.return_value = _reply({'item_list': '1. Soap'})

        text_generation_service.generate_sales_plan_items('soap')

        args, kwargs = mock_post.call_args
        assert args[0] == app.config['TEXTGEN_API_URL']
        assert kwargs['headers']['Authorization'] == 'Bearer test-key'
        assert kwargs['timeout'] == app.config['TEXTGEN_TIMEOUT']
        assert kwargs['json']['model'] == app.config['TEXTGEN_MODEL']
        assert 'soap' in kwargs['json']['messages'][0]['content']

    def test_missing_api_key_is_reported(self, app, mock_post):
        app.config['TEXTGEN_API_KEY'] = ''
        with pytest.raises(TextGenerationError):
            text_generation_service.generate_sales_plan_items('soap')
        mock_post.assert_not_called()

    def test_http_error_maps_to_502(self, mock_post):
        response = MagicMock()
        response.status_code = 500
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
        mock_post.return_value = response

        with pytest.raises(TextGenerationError) as exc_info:
            text_generation_service.generate_sales_plan_items('soap')
        assert exc_info.value.status_code == 502

    def test_connection_error_maps_to_text_generation_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('down')
        with pytest.raises(TextGenerationError):
            text_generation_service.generate_task_description('50 soap')

    def test_non_json_message_is_rejected(self, mock_post):
        mock_post.return_value = _reply('not json at all')
        with pytest.raises(TextGenerationError):
            text_generation_service.generate_sales_plan_items('soap')

    def test_unknown_prompt_name(self, app):
        with pytest.raises(BusinessLogicError):
            text_generation_service.generate('haiku', {})


class TestHelpers:
    """Helper-specific validation and output shaping."""

    def test_task_description_uses_worker_gender(self, mock_post):
        mock_post.return_value = _reply({'task_description': '50 soap pack karein'})

        result = text_generation_service.generate_task_description('50 soap', 'female')

        assert result == {'task_description': '50 soap pack karein'}
        assert 'female' in mock_post.call_args.kwargs['json']['messages'][0]['content']

    def test_empty_prompt_is_rejected_before_any_request(self, mock_post):
        with pytest.raises(BusinessLogicError):
            text_generation_service.generate_task_description('   ')
        mock_post.assert_not_called()

    def test_missing_field_in_reply(self, mock_post):
        mock_post.return_value = _reply({'something_else': 'x'})
        with pytest.raises(TextGenerationError):
            text_generation_service.generate_sales_plan_items('soap')

    @pytest.mark.parametrize('revenue,expenses,status,net', [
        ('1000', '400', 'Profit', '600.00'),
        ('300', '500', 'Loss', '-200.00'),
        ('250', '250', 'Breakeven', '0.00'),
    ])
    def test_financial_status_is_computed_locally(self, mock_post, revenue, expenses, status, net):
        # The model claims the opposite; local arithmetic wins
        mock_post.return_value = _reply({
            'financial_status': 'Loss' if status == 'Profit' else 'Profit',
            'net_result': 999,
            'summary': 'Karobar theek chal raha hai.',
            'suggestions': ['Kharch kam karein', 'Sales barhayein'],
        })

        result = text_generation_service.analyze_financial_health(revenue, expenses, 'Soap Box')

        assert result['financial_status'] == status
        assert result['net_result'] == net
        assert result['summary'] == 'Karobar theek chal raha hai.'
        assert result['suggestions'] == ['Kharch kam karein', 'Sales barhayein']

    def test_anomaly_detection(self, mock_post):
        mock_post.return_value = _reply({'anomaly_detected': True, 'anomaly_description': 'Sale logged at 3 AM.'})

        result = text_generation_service.detect_salesman_anomaly(
            salesman_name='Salesman One', sale_date='2024-05-01', sale_time='03:00',
            customer_name='Ali Traders', location_data='Karachi', products_sold='Soap x4',
            total_sale_amount='400',
        )

        assert result == {'anomaly_detected': True, 'anomaly_description': 'Sale logged at 3 AM.'}

    def test_anomaly_requires_boolean_flag(self, mock_post):
        mock_post.return_value = _reply({'anomaly_detected': 'maybe'})
        with pytest.raises(TextGenerationError):
            text_generation_service.detect_salesman_anomaly(
                'S', '2024-05-01', '10:00', 'C', 'Lahore', 'Soap', '10'
            )

    def test_anomaly_input_validation(self, mock_post):
        with pytest.raises(BusinessLogicError):
            text_generation_service.detect_salesman_anomaly('', '2024-05-01', '10:00', 'C', 'L', 'P', '10')
        mock_post.assert_not_called()
