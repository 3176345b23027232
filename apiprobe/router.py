# apiprobe/router.py
from typing import List
from uuid import uuid4

from fastapi import APIRouter, BackgroundTasks, HTTPException

from .errors import ScanConfigurationError
from .models import ProbeInfo, RunConfig, ScanResult, ScanStatus
from .probe_set import available_probes
from .scan_core import run_background_scan, validate_run_config
from .store import get_results, get_status, new_scan, store

router = APIRouter(prefix="/scan", tags=["scan"])

@router.post("", response_model=ScanStatus)
async def start_scan(config: RunConfig, background_tasks: BackgroundTasks):
    try:
        validate_run_config(config)
    except ScanConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    scan_id = str(uuid4())
    started = new_scan(scan_id, config)
    background_tasks.add_task(run_background_scan, scan_id, config, store)
    return started

@router.get("/probes", response_model=List[ProbeInfo])
async def list_probes():
    return available_probes()

@router.get("/{scan_id}/status", response_model=ScanStatus)
async def check_status(scan_id: str):
    return get_status(scan_id)

@router.get("/{scan_id}/results", response_model=ScanResult)
async def check_results(scan_id: str):
    return get_results(scan_id)
