"""
Response ingestion: files on disk → validated ``Response`` models.

Modules
-------
response_reader : read_responses_json() + read_responses_csv() +
                  read_responses() (dispatch on file extension), each
                  returning a ``ResponseFile`` (responses + skipped records).
"""
