from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api import _summarize, get_station
from services.station import WeatherStation


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    station: WeatherStation = Depends(get_station),
) -> HTMLResponse:
    streams = [_summarize(kind, station) for kind in station.streams.kinds()]
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "base_streams": [stream for stream in streams if not stream.derived],
            "derived_streams": [stream for stream in streams if stream.derived],
        },
    )
