import functools
import logging

from crm_client.http import ApiResponse, is_cancel

logger = logging.getLogger(__name__)


def _log_failure(error):
    logger.error(f"API error: {error}")

    response = getattr(error, 'response', None)
    request = getattr(error, 'request', None)
    if response is not None:
        logger.error(f"Response error data: {response.data}")
        logger.error(f"Response error status: {response.status}")
        logger.error(f"Response error headers: {response.headers}")
    elif request is not None:
        logger.error(f"Request error: {request}")
        code = getattr(error, 'code', None)
        if code == 'ECONNABORTED':
            logger.error("Request timed out")
        elif code == 'ETIMEDOUT':
            logger.error("Connection to server timed out")
        elif code == 'ERR_NETWORK':
            logger.error("Network error - server may be unreachable")
    else:
        logger.error(f"Error message: {error}")

    config = getattr(error, 'config', None)
    if config:
        logger.error(f"Error config: {config}")


def with_error_handling(api_call):
    """
    Wrap an API call so it returns the response body.

    Cancellations are re-raised silently; every other failure is logged with
    whatever the error carries and then re-raised unchanged.
    """
    @functools.wraps(api_call)
    def wrapper(*args, **kwargs):
        try:
            result = api_call(*args, **kwargs)
        except Exception as error:
            if is_cancel(error):
                raise
            _log_failure(error)
            raise

        if isinstance(result, ApiResponse):
            logger.debug(
                f"API Response: {result.config.get('method')} {result.config.get('url')} {result.status}"
            )
            return result.data
        return result

    return wrapper
