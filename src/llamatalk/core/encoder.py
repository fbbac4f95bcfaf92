from llamatalk.core.domain import GenerateRequest


def encode_generate_request(prompt: str, model: str, stream: bool = True) -> GenerateRequest:
    """Build the JSON body for POST /api/generate."""
    return {
        'model': model,
        'prompt': prompt,
        'stream': stream,
    }
