import pytest

from fakes import make_acquire, make_sampler
from stamper.exceptions import InferenceFailure
from stamper.retry import RetryPolicy
from stamper.video_pipeline import PipelineContext


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_context(tmp_path, sleeps):
    def factory(vision, geocoder, n_frames=5, fail_urls=(), **kwargs):
        return PipelineContext(
            vision=vision,
            geocoder=geocoder,
            interval=kwargs.pop("interval", 30),
            output_dir=str(tmp_path / "routes"),
            download_dir=str(tmp_path / "downloads"),
            frames_dir=str(tmp_path / "frames"),
            retry_policy=RetryPolicy(sleep=sleeps.append),
            sleep=sleeps.append,
            acquire=make_acquire(fail_urls),
            sample=kwargs.pop("sample", None) or make_sampler(n_frames),
            **kwargs,
        )
    return factory


@pytest.fixture
def transient_error():
    return InferenceFailure("503 overloaded")
