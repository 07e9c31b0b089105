"""
Docsmith Backend: Attachment Responses
========================================

What:  Builds the binary responses of the two download endpoints.
Why:   HTTP headers are latin-1, while template names are whatever the
       uploader's filesystem allowed ("Angebot_Müller.docx", "報告.xlsx").
How:   ASCII names go out as a plain filename="..."; anything else gets an
       ASCII fallback plus the RFC 6266 filename*=UTF-8''<percent-encoded>
       form, which every current browser prefers when present.
"""

from urllib.parse import quote

from fastapi import Response

from app.schemas.common import FileDownload


def content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "download"
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def attachment_response(download: FileDownload) -> Response:
    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": content_disposition(download.filename)},
    )
