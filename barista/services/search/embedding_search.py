"""Semantic drink search over OpenAI embeddings."""
import logging
from typing import Dict, List, Optional
import numpy as np
from openai import AsyncOpenAI

from barista.core.config import settings
from barista.core.metrics import VECTOR_SEARCH_DURATION, track_ai_call
from barista.services.menu.base import Drink
from barista.services.menu.repository import MenuRepository
from barista.services.search.base import DrinkMatch, SemanticSearch

logger = logging.getLogger(__name__)

# drink id -> embedding of the drink summary, shared across requests
_drink_embeddings: Dict[str, np.ndarray] = {}


def clear_embedding_cache() -> None:
    _drink_embeddings.clear()


class EmbeddingDrinkSearch(SemanticSearch):
    """Ranks menu drinks by cosine similarity between embeddings."""

    def __init__(
        self,
        menu_repository: MenuRepository,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
    ):
        self.menu_repository = menu_repository
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.embedding_model

    async def _embed(self, texts: List[str]) -> List[np.ndarray]:
        with track_ai_call(self.model, "embedding"):
            response = await self.client.embeddings.create(model=self.model, input=texts)
        data = sorted(response.data, key=lambda item: item.index)
        return [np.array(item.embedding, dtype=float) for item in data]

    async def _drink_vectors(self, drinks: List[Drink]) -> np.ndarray:
        missing = [drink for drink in drinks if drink.id not in _drink_embeddings]
        if missing:
            logger.info(f"[SEARCH] Embedding {len(missing)} drinks")
            vectors = await self._embed([drink.to_summary() for drink in missing])
            for drink, vector in zip(missing, vectors):
                _drink_embeddings[drink.id] = vector
        return np.vstack([_drink_embeddings[drink.id] for drink in drinks])

    async def find_similar(self, text: str, limit: int) -> List[DrinkMatch]:
        if not text or not text.strip() or limit <= 0:
            return []

        with VECTOR_SEARCH_DURATION.time():
            drinks = await self.menu_repository.find_all()
            if not drinks:
                return []
            matrix = await self._drink_vectors(drinks)
            query = (await self._embed([text.strip()]))[0]

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        scores = np.dot(matrix, query) / np.where(norms == 0, 1.0, norms)
        ranked = np.argsort(-scores)[:limit]

        matches = [
            DrinkMatch(drink=drinks[i], score=float(np.clip(scores[i], 0.0, 1.0)))
            for i in ranked
        ]
        logger.debug(
            f"[SEARCH] '{text}' -> "
            f"{[(match.drink.name, round(match.score, 3)) for match in matches]}"
        )
        return matches
