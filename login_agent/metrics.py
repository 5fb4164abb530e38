import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class StageMetric:
    name: str
    start_time: float
    end_time: Optional[float] = None
    success: bool = False
    error: Optional[str] = None


@dataclass
class StageTracker:
    start_time: float = field(default_factory=time.time)
    stages: dict[str, StageMetric] = field(default_factory=dict)

    def start_stage(self, name: str) -> None:
        self.stages[name] = StageMetric(name=name, start_time=time.time())
        print(f"\n--- {name} ---", flush=True)

    def end_stage(self, name: str, success: bool, error: Optional[str] = None) -> None:
        if name in self.stages:
            self.stages[name].end_time = time.time()
            self.stages[name].success = success
            self.stages[name].error = error

    def failed_stage(self) -> Optional[str]:
        for stage in self.stages.values():
            if stage.end_time is not None and not stage.success:
                return stage.name
        return None

    def get_summary(self) -> dict:
        completed = [s for s in self.stages.values() if s.end_time is not None]
        return {
            "total_stages": len(self.stages),
            "completed": sum(1 for s in completed if s.success),
            "failed_stage": self.failed_stage(),
            "total_time_seconds": time.time() - self.start_time,
            "per_stage": [
                {
                    "name": s.name,
                    "time_seconds": round((s.end_time or time.time()) - s.start_time, 2),
                    "success": s.success,
                    "error": s.error,
                }
                for s in self.stages.values()
            ],
        }

    def print_summary(self) -> None:
        s = self.get_summary()
        print(f"\n{'='*50}")
        print("LOGIN RUN - STAGES")
        print(f"{'='*50}")
        for stage in s["per_stage"]:
            status = "ok" if stage["success"] else "FAILED"
            print(f"  {stage['name']:<20} {status:<7} {stage['time_seconds']:.1f}s")
        print(f"Total time: {s['total_time_seconds']:.1f}s")
        print(f"{'='*50}\n", flush=True)
