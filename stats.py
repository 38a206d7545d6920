# stats.py
import os
import time
from datetime import datetime

import psutil


def process_stats(pid: int = None) -> dict:
    pid = os.getpid() if pid is None else pid
    try:
        p = psutil.Process(pid)
        with p.oneshot():  # optimizes multiple calls
            memory_info = p.memory_info()
            mem_percent = p.memory_percent()
            threads = p.num_threads()
            create_time = datetime.fromtimestamp(p.create_time()).strftime("%H:%M:%S")
            uptime = round(time.time() - p.create_time(), 2)
        return {
            "pid": pid,
            "status": p.status(),
            "memory_percent": round(mem_percent, 2),
            "memory_rss_mb": round(memory_info.rss / (1024 * 1024), 2),
            "threads": threads,
            "uptime_sec": uptime,
            "create_time": create_time,
        }
    except psutil.NoSuchProcess:
        return {"pid": pid, "status": "terminated"}
