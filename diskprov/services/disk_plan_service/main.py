import logging
from fastapi import FastAPI, HTTPException

from diskprov.shared import config
from diskprov.core.context import Context
from diskprov.core.disk_parser import DiskSpecParser
from diskprov.core.options import overlay_options
from diskprov.core.orchestrator import resolve_disk_option_prefix, resolve_default_bootable
from diskprov.core.parameters import ParameterResolver
from diskprov.core.plan_builder import DiskPlanBuilder

from .models import DiskPlanRequest, DiskPlanResponse, AddDiskCall, HealthResponse

# Configure logging
config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Disk Plan Service",
    version="0.1.0",
    description="Previews the disks a provisioning request would add to a VM.",
)


@app.get("/v1/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok")


@app.post("/v1/disk-plans", response_model=DiskPlanResponse)
async def preview_disk_plan(request: DiskPlanRequest):
    """
    Builds the disk plan for the given options without touching any VM.

    - Merges ws_values and dialog sub-bags onto the top level options.
    - Groups disk options by index and applies defaults.
    - Returns the ordered plan and the add_disk calls that would be made.
    """
    logger.info("Received request to /v1/disk-plans")
    options = overlay_options(request.options)
    if not options:
        raise HTTPException(status_code=400, detail="options not found")

    resolver = ParameterResolver(Context(inputs={
        "disk_option_prefix": request.disk_option_prefix,
        "default_bootable": request.default_bootable,
    }))
    prefix = resolve_disk_option_prefix(resolver)
    default_bootable = resolve_default_bootable(resolver)

    try:
        partials = DiskSpecParser(prefix).parse(options)
        plan = DiskPlanBuilder().build(partials, default_bootable=default_bootable)
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        logger.error(f"Disk plan could not be built: {e}")
        raise HTTPException(status_code=422, detail=f"Invalid disk options: {e}")

    calls = [
        AddDiskCall(index=disk.index, size_mb=disk.size_mb, flags=disk.add_disk_flags(request.datastore_name))
        for disk in plan.requested
    ]
    skipped = [disk.index for disk in plan.disks if disk.size_gb <= 0]
    logger.info(f"Disk plan with prefix '{prefix}': {len(calls)} disk(s) to add, {len(skipped)} skipped.")

    return DiskPlanResponse(
        disk_option_prefix=prefix,
        default_bootable=default_bootable,
        disks=plan.disks,
        add_disk_calls=calls,
        skipped=skipped,
    )

if __name__ == "__main__":
    import uvicorn
    # Uvicorn is typically run from the container command
    uvicorn.run(app, host="0.0.0.0", port=8005)
