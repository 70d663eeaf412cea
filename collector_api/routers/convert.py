from fastapi import APIRouter, HTTPException, status

from collector.errors import ConversionError, UnsupportedUrlError
from collector.scrape import canonical_url, convert_many
from collector.schema import ConversionResult

from ..models import BulkConvertRequest, ConvertRequest

router = APIRouter()


@router.post("/convert")
def convert(payload: ConvertRequest):
    """
    Convert one link to its CSSBuy form. Unsupported site and unrecognised link
    shape are reported with different messages.
    """
    try:
        converted = canonical_url(payload.url)
    except (UnsupportedUrlError, ConversionError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    result = ConversionResult(
        original_url=payload.url,
        converted_url=converted,
        is_valid=True,
        is_convertible=True,
    )
    return result.model_dump(by_alias=True)


@router.post("/convert/bulk")
def convert_bulk(payload: BulkConvertRequest):
    results = convert_many(payload.urls)
    return {
        "results": [r.model_dump(by_alias=True) for r in results],
        "totalUrls": len(payload.urls),
        "successCount": sum(1 for r in results if r.is_convertible),
    }
