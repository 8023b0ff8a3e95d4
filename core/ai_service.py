"""
==============================================================================
CORE APP - AI PRODUCT DESCRIPTIONS
==============================================================================
Generates HTML product descriptions with an OpenAI-compatible chat
completions endpoint.

The admin picks a writing style; the product name (and cover image, when
there is one) is sent to the model, which answers with HTML restricted to
<p>, <ul>, <li>, <strong> and <em>.

Author: Storefront Development Team
==============================================================================
"""

import logging

import httpx
from django.conf import settings

logger = logging.getLogger('storefront.ai')


STYLE_PROMPTS = {
    'professional': (
        'Use a professional, corporate tone. Highlight the technical '
        'features and quality of the product. Convey reliability and expertise.'
    ),
    'energetic': (
        'Use an energetic, motivating tone. Reflect a passion for sport and '
        'fitness with dynamic, exciting language.'
    ),
    'minimal': (
        'Use a minimal, concise tone. Short, clear and effective sentences; '
        'skip unnecessary detail and focus on the essentials.'
    ),
    'luxury': (
        'Use a luxurious, premium tone. Convey top quality and exclusivity '
        'with sophisticated, elegant language.'
    ),
    'sporty': (
        'Use a sporty, athletic tone. Emphasise performance and durability '
        'and an active lifestyle.'
    ),
}

STYLE_NAMES = {
    'professional': 'Professional',
    'energetic': 'Energetic',
    'minimal': 'Minimal',
    'luxury': 'Luxury',
    'sporty': 'Sporty',
}


class AIServiceError(Exception):
    """The description could not be generated."""


class AIServiceNotConfigured(AIServiceError):
    """No API key is configured."""


def build_messages(product_name, image_url, style):
    system_prompt = (
        'You are a professional product copywriter for a premium fitness '
        'and sportswear brand.\n\n'
        'Your task:\n'
        '1. Analyse the given product name and photo\n'
        '2. Write a compelling product description in the requested style\n'
        '3. Answer in HTML (<p> for paragraphs, <ul><li> for lists, '
        '<strong> for emphasis)\n'
        '4. Write in Turkish, 150-250 words, SEO friendly\n\n'
        f'Style: {STYLE_PROMPTS[style]}\n\n'
        'Important:\n'
        '- Return only the HTML content, no commentary\n'
        '- Do NOT use <html>, <body> or <head>\n'
        '- Only use <p>, <ul>, <li>, <strong>, <em>'
    )

    user_text = (
        f'Product name: {product_name}\n\n'
        f'Write a "{STYLE_NAMES[style]}" style description for this product.'
    )

    if image_url:
        user_content = [
            {'type': 'text', 'text': user_text},
            {'type': 'image_url', 'image_url': {'url': image_url, 'detail': 'low'}},
        ]
    else:
        user_content = user_text

    return [
        {'role': 'system', 'content': system_prompt},
        {'role': 'user', 'content': user_content},
    ]


def generate_product_description(product_name, image_url, style):
    """
    Ask the model for a product description.

    Args:
        product_name (str): Product name
        image_url (str|None): Absolute URL of the cover image
        style (str): One of STYLE_PROMPTS

    Returns:
        str: HTML description

    Raises:
        ValueError: Unknown style
        AIServiceNotConfigured: OPENAI_API_KEY is empty
        AIServiceError: HTTP or response errors
    """
    if style not in STYLE_PROMPTS:
        raise ValueError(f'Unknown description style: {style}')

    if not settings.OPENAI_API_KEY:
        raise AIServiceNotConfigured('AI description service is not configured.')

    payload = {
        'model': settings.OPENAI_MODEL,
        'messages': build_messages(product_name, image_url, style),
        'max_tokens': 1000,
        'temperature': 0.7,
    }
    headers = {'Authorization': f'Bearer {settings.OPENAI_API_KEY}'}

    try:
        response = httpx.post(
            settings.OPENAI_API_URL,
            json=payload,
            headers=headers,
            timeout=settings.OPENAI_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as exc:
        logger.error('AI description request failed: HTTP %s', exc.response.status_code)
        raise AIServiceError('The AI service rejected the request.') from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.error('AI description request failed: %s', exc)
        raise AIServiceError('The AI service could not be reached.') from exc

    try:
        content = (data['choices'][0]['message']['content'] or '').strip()
    except (KeyError, IndexError, TypeError, AttributeError):
        content = ''

    if not content:
        raise AIServiceError('The AI service returned no description.')

    logger.info('Generated %s description for "%s"', style, product_name)
    return content
