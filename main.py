from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from typing import Dict, List
import uvicorn
from contextlib import asynccontextmanager
import asyncio
import logging

from config import Settings
from constants import ESSENTIAL_SUGGESTIONS, LOCATION_SUGGESTIONS, REGIONS
from coordinator import QueryCoordinator, build_sources
from data_loader import RemoteLoader, transform_districts, transform_resources
from debounce import DebounceGate
from models import MatchResult, SearchResponse, SuggestionsResponse
from search_engine import RemoteIndex, SearchIndex, StaticIndex


def build_indexes(settings: Settings) -> Dict[str, SearchIndex]:
    return {
        "states": StaticIndex("states", REGIONS, fields=["name"]),
        "districts": RemoteIndex(
            "districts",
            fields=["district"],
            loader=RemoteLoader(settings.districts_url, transform_districts, settings.fetch_timeout, settings.fetch_retries),
            limit=5,
        ),
        "resources": RemoteIndex(
            "resources",
            fields=["category", "city", "contact", "description", "organisation_name", "state"],
            loader=RemoteLoader(settings.resources_url, transform_resources, settings.fetch_timeout, settings.fetch_retries),
            limit=5,
        ),
    }


settings = Settings.from_env()
indexes = build_indexes(settings)


logger = logging.getLogger("simple-search")
logging.basicConfig(level=settings.log_level)


class WebSocketRenderer:
    """Pushes result lists and clear signals to one connected client."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def render(self, generation: int, query: str, results: List[MatchResult]) -> None:
        await self.websocket.send_json({
            "type": "results",
            "generation": generation,
            "query": query,
            "results": [r.model_dump(mode="json") for r in results],
        })

    async def clear(self, generation: int) -> None:
        await self.websocket.send_json({"type": "cleared", "generation": generation})


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: fetch remote datasets; failures leave those indexes empty
    remote = [index for index in indexes.values() if isinstance(index, RemoteIndex)]
    loaded = await asyncio.gather(*(index.load() for index in remote))
    for index, ok in zip(remote, loaded):
        if ok:
            logger.info("Index %s ready with %d records", index.name, len(index))
        else:
            logger.warning("Index %s unavailable at startup", index.name)
    yield


app = FastAPI(title="Search Service", lifespan=lifespan)


@app.get("/search", response_model=SearchResponse)
async def search(search_query: str = Query(..., min_length=1, title="Search Query", description="Search regions, districts and resources")):
    coordinator = QueryCoordinator(build_sources(indexes))
    results = await coordinator.search(search_query) or []
    return SearchResponse(query=search_query.strip(), total=len(results), results=results)


@app.get("/suggestions", response_model=SuggestionsResponse)
def suggestions():
    return SuggestionsResponse(essentials=ESSENTIAL_SUGGESTIONS, locations=LOCATION_SUGGESTIONS)


@app.websocket("/ws/search")
async def search_socket(websocket: WebSocket):
    await websocket.accept()
    coordinator = QueryCoordinator(build_sources(indexes), renderer=WebSocketRenderer(websocket))
    gate = DebounceGate(coordinator.search, coordinator.clear, delay=settings.debounce_delay)
    try:
        while True:
            text = await websocket.receive_text()
            await gate.on_input(text)
    except WebSocketDisconnect:
        logger.debug("Search client disconnected")
    finally:
        await gate.close()


@app.get("/health")
def health():
    return {
        "status": "ok",
        "indexes": {name: {"ready": index.ready, "records": len(index)} for name, index in indexes.items()},
    }



if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
