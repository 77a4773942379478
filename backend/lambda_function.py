from mangum import Mangum
from main import app
import logging

logger = logging.getLogger(__name__)

# lifespan events are not delivered on Lambda
handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    request_id = getattr(context, "aws_request_id", None)
    logger.debug(f"Lambda invocation {request_id}: {event.get('httpMethod')} {event.get('path')}")
    return handler(event, context)
