"""Text generation client (OpenAI-compatible chat completions) and the helpers built on it."""
import json
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from flask import current_app

from bizdesk.exceptions import BusinessLogicError, TextGenerationError
from bizdesk.utils.money import parse_money, quantize


PROMPTS = {
    'task_description': (
        "You are an expert logistics and warehouse manager who is fluent in {language}. "
        "Convert these keywords into a clear, concise and professional task description for a "
        "warehouse worker, in {language}. The worker is {gender}; use grammatically correct "
        "forms for that gender.\n\nKeywords: {prompt}\n\n"
        'Answer as JSON: {{"task_description": "..."}}'
    ),
    'sales_plan_items': (
        "You are an expert sales manager who is fluent in {language}. Convert these keywords "
        "into a clear, concise and professional list of items for a salesman to carry for the "
        "day, in {language}. Use a direct and instructional tone.\n\nKeywords: {prompt}\n\n"
        'Answer as JSON: {{"item_list": "..."}}'
    ),
    'financial_health': (
        "You are an expert business analyst for a small business. Analyze this data for the "
        "last 30 days:\n- Total Revenue: {total_revenue}\n- Total Expenses: {total_expenses}\n"
        "- Top Selling Products: {top_selling_products}\n\n"
        "The net result is {net_result} and the status is {financial_status}. Write a 1-2 "
        "sentence summary mentioning the net result and 2-3 concrete, actionable suggestions, "
        "both in {language}.\n\n"
        'Answer as JSON: {{"summary": "...", "suggestions": ["..."]}}'
    ),
    'salesman_anomaly': (
        "You detect anomalies in sales data. Determine whether the salesman's location or the "
        "timing of this sale is unusual.\n\nSalesman Name: {salesman_name}\nSale Date: {sale_date}\n"
        "Sale Time: {sale_time}\nCustomer Name: {customer_name}\nLocation Data: {location_data}\n"
        "Products Sold: {products_sold}\nTotal Sale Amount: {total_sale_amount}\n\n"
        "If no anomalies are found, anomaly_description must be 'No anomalies detected.'\n"
        'Answer as JSON: {{"anomaly_detected": true|false, "anomaly_description": "..."}}'
    ),
}


class TextGenerationClient:
    """Client for a chat completions endpoint returning JSON objects."""

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None,
                 model: Optional[str] = None, timeout: Optional[int] = None):
        config = current_app.config
        self.api_url = api_url or config.get('TEXTGEN_API_URL')
        self.api_key = api_key or config.get('TEXTGEN_API_KEY')
        self.model = model or config.get('TEXTGEN_MODEL')
        self.timeout = timeout or config.get('TEXTGEN_TIMEOUT', 30)
        if not self.api_key:
            raise TextGenerationError('Text generation is not configured (TEXTGEN_API_KEY missing)')

        self.headers = {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json'
        }

    def complete_json(self, prompt: str) -> Dict[str, Any]:
        """
        Send one prompt and parse the model's reply as a JSON object.

        Raises:
            TextGenerationError: transport error, non-2xx status or unparseable reply
        """
        body = {
            'model': self.model,
            'messages': [{'role': 'user', 'content': prompt}],
            'response_format': {'type': 'json_object'},
        }

        try:
            response = requests.post(self.api_url, json=body, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            current_app.logger.error(f"[TEXTGEN] HTTP error: {e.response.status_code if e.response is not None else '?'}")
            raise TextGenerationError('Text generation service returned an error') from e
        except ValueError as e:
            raise TextGenerationError('Text generation service returned invalid JSON') from e
        except requests.RequestException as e:
            current_app.logger.error(f"[TEXTGEN] Request failed: {e}")
            raise TextGenerationError('Text generation service is unreachable') from e

        try:
            content = data['choices'][0]['message']['content']
            result = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            current_app.logger.error(f"[TEXTGEN] Unexpected reply shape: {str(data)[:200]}")
            raise TextGenerationError('Text generation service returned an unexpected reply') from e

        if not isinstance(result, dict):
            raise TextGenerationError('Text generation service returned an unexpected reply')
        return result


def generate(prompt_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Render a named prompt with ``payload`` and return the model's JSON object."""
    template = PROMPTS.get(prompt_name)
    if template is None:
        raise BusinessLogicError(f'Unknown prompt: {prompt_name}')
    values = {'language': current_app.config.get('TEXTGEN_LANGUAGE', 'Roman Urdu'), **payload}

    current_app.logger.info(f"[TEXTGEN] Generating {prompt_name}")
    return TextGenerationClient().complete_json(template.format(**values))


def _require_text(value, field: str) -> str:
    value = (value or '').strip() if isinstance(value, str) else ''
    if not value:
        raise BusinessLogicError(f'{field} is required')
    return value


def _require_str_field(result: Dict[str, Any], key: str) -> str:
    value = result.get(key)
    if not isinstance(value, str) or not value.strip():
        raise TextGenerationError(f'Text generation reply is missing {key}')
    return value.strip()


def generate_task_description(prompt: str, worker_gender: Optional[str] = None) -> Dict[str, str]:
    prompt = _require_text(prompt, 'Prompt')
    gender = worker_gender if worker_gender in ('male', 'female') else 'male'
    result = generate('task_description', {'prompt': prompt, 'gender': gender})
    return {'task_description': _require_str_field(result, 'task_description')}


def generate_sales_plan_items(prompt: str) -> Dict[str, str]:
    prompt = _require_text(prompt, 'Prompt')
    result = generate('sales_plan_items', {'prompt': prompt})
    return {'item_list': _require_str_field(result, 'item_list')}


def financial_status(net_result: Decimal) -> str:
    if net_result > 0:
        return 'Profit'
    if net_result < 0:
        return 'Loss'
    return 'Breakeven'


def analyze_financial_health(total_revenue, total_expenses, top_selling_products: str = '') -> Dict[str, Any]:
    """
    Financial health summary. Status and net result are computed here and
    override whatever the model returns; only the wording comes from the model.
    """
    revenue = parse_money(total_revenue, 'total_revenue')
    expenses = parse_money(total_expenses, 'total_expenses')
    net_result = quantize(revenue - expenses)
    status = financial_status(net_result)

    result = generate('financial_health', {
        'total_revenue': revenue,
        'total_expenses': expenses,
        'top_selling_products': (top_selling_products or '').strip() or 'none',
        'net_result': net_result,
        'financial_status': status,
    })

    suggestions = result.get('suggestions') or []
    if isinstance(suggestions, str):
        suggestions = [suggestions]
    return {
        'financial_status': status,
        'net_result': str(net_result),
        'summary': _require_str_field(result, 'summary'),
        'suggestions': [str(s) for s in suggestions if str(s).strip()],
    }


def detect_salesman_anomaly(salesman_name: str, sale_date: str, sale_time: str, customer_name: str,
                            location_data: str, products_sold: str, total_sale_amount) -> Dict[str, Any]:
    payload = {
        'salesman_name': _require_text(salesman_name, 'Salesman name'),
        'sale_date': _require_text(sale_date, 'Sale date'),
        'sale_time': _require_text(sale_time, 'Sale time'),
        'customer_name': _require_text(customer_name, 'Customer name'),
        'location_data': _require_text(location_data, 'Location data'),
        'products_sold': _require_text(products_sold, 'Products sold'),
        'total_sale_amount': parse_money(total_sale_amount, 'total_sale_amount'),
    }
    result = generate('salesman_anomaly', payload)

    detected = result.get('anomaly_detected')
    if not isinstance(detected, bool):
        raise TextGenerationError('Text generation reply is missing anomaly_detected')
    description = result.get('anomaly_description')
    if not isinstance(description, str) or not description.strip():
        description = 'No anomalies detected.' if not detected else 'Anomaly detected.'
    return {'anomaly_detected': detected, 'anomaly_description': description.strip()}
