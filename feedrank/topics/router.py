from fastapi import APIRouter, Depends

from feedrank.dependencies import get_classifier
from feedrank.topics.classifier import TopicClassifier
from feedrank.topics.schemas import ClassifyRequest, ClassifyResponse

router = APIRouter(prefix="/topics", tags=["Topics"])


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    summary="Classify text into topics",
    description=(
        "Keyword, hashtag and phrase matching after case folding and accent "
        "stripping. `text`, `title` and `summary` are joined before matching. "
        "No auth required."
    ),
)
async def classify(
    body: ClassifyRequest,
    classifier: TopicClassifier = Depends(get_classifier),
) -> ClassifyResponse:
    topics = classifier.classify_post(body.text, body.title, body.summary)
    return ClassifyResponse(topics=sorted(topics))
