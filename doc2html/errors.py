"""Error taxonomy for doc2html.

Every error that can reach a client carries a stable, user-readable message and
the HTTP status the views answer with. Nothing here should ever hold a stack
trace or a filesystem path.
"""


class Doc2HtmlError(Exception):
    status_code = 400
    default_message = 'The request could not be processed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConversionError(Doc2HtmlError):
    """Raised by the validator and decoders; terminal for the job."""


class ValidationRejected(ConversionError):
    default_message = 'File rejected'


class DecodeError(ConversionError):
    default_message = 'The file could not be converted'


class EmptyInput(ConversionError):
    default_message = 'The file has no usable content'


class NoMergeableContent(Doc2HtmlError):
    default_message = 'No completed files available to merge'


class JobNotFound(Doc2HtmlError):
    status_code = 404
    default_message = 'File not found'


class JobExpired(JobNotFound):
    default_message = 'File expired and deleted'


class NotReady(Doc2HtmlError):
    status_code = 409
    default_message = 'Conversion not completed yet'


class ConversionFailed(Doc2HtmlError):
    status_code = 409
    default_message = 'Conversion failed'


class InvalidTransition(Exception):
    """Internal: a status change the job state machine does not allow."""
