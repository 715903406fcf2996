from starlette import status


class DocumentAnalyzerError(Exception):
    """Base error rendered to API callers as {"detail": message}."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Extraction


class UnsupportedFormat(DocumentAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class EmptyContent(DocumentAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class ParseFailure(DocumentAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


# Model calls


class AnalysisFailure(DocumentAnalyzerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MalformedAnalysis(AnalysisFailure):
    """The structured analysis reply could not be parsed as a JSON object."""


# API


class NotFound(DocumentAnalyzerError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidIndex(DocumentAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLarge(DocumentAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class MissingFile(DocumentAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(DocumentAnalyzerError):
    status_code = status.HTTP_401_UNAUTHORIZED


# Collaborators


class BlobStoreError(DocumentAnalyzerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
