"""
Concurrent ingestion and analysis against a single sensor
"""
import threading

import pytest

from conftest import OWNER, sensor_payload
from telemetry.errors import NotFoundError
from telemetry.event_hub import TOPIC_ALERT_RAISED, TOPIC_READING_INGESTED
from telemetry.service_manager import TelemetryEngine
from telemetry.storage.repository import InMemorySensorRepository

WORKERS = 4
READINGS_PER_WORKER = 400


def _run(workers):
    errors = []

    def wrap(target):
        def runner():
            try:
                target()
            except Exception as e:  # surfaced through `errors`
                errors.append(e)
        return runner

    threads = [threading.Thread(target=wrap(w)) for w in workers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


def test_parallel_ingestion_keeps_buffer_bounded():
    engine = TelemetryEngine()
    engine.register_sensor(sensor_payload("S1"), OWNER)

    def ingest(worker):
        def target():
            for i in range(READINGS_PER_WORKER):
                # Every fifth reading is below min
                value = 10 if i % 5 == 0 else 40 + worker
                engine.ingest_reading("S1", value, "%", "moisture")
        return target

    errors = _run([ingest(w) for w in range(WORKERS)])

    assert errors == []
    sensor = engine.registry.get_sensor("S1")
    assert sensor.readings.size() == 1000
    assert len(sensor.alerts) == WORKERS * READINGS_PER_WORKER // 5
    timestamps = [r.timestamp for r in sensor.readings.get_all()]
    assert timestamps == sorted(timestamps)


def test_analysis_while_ingesting():
    engine = TelemetryEngine()
    engine.register_sensor(sensor_payload("S1"), OWNER)
    done = threading.Event()

    def writer():
        for i in range(1500):
            engine.ingest_reading("S1", 50 + (i % 7), "%", "moisture")
        done.set()

    def reader():
        while not done.is_set():
            engine.detect_anomalies("S1")
            engine.predict_maintenance("S1")
            engine.list_readings("S1", limit=50)
            engine.health_summary(OWNER)

    errors = _run([writer, reader, reader])

    assert errors == []
    assert engine.registry.get_sensor("S1").readings.size() == 1000


class DeletedWhileWaitingRepository(InMemorySensorRepository):
    """Removes a sensor as its lock is handed out, as a delete that won the lock would."""

    def __init__(self):
        super().__init__()
        self.delete_on_lock = set()

    def lock_for(self, sensor_id):
        lock = super().lock_for(sensor_id)
        if sensor_id in self.delete_on_lock:
            self.delete_on_lock.discard(sensor_id)
            self.remove(sensor_id)
        return lock


class TestWritersRacingDelete:

    @pytest.fixture
    def repository(self):
        return DeletedWhileWaitingRepository()

    @pytest.fixture
    def engine(self, repository):
        engine = TelemetryEngine(repository=repository)
        engine.register_sensor(sensor_payload("S1"), OWNER)
        return engine

    @pytest.fixture
    def published(self, engine):
        received = []
        for topic in (TOPIC_READING_INGESTED, TOPIC_ALERT_RAISED):
            engine.event_hub.subscribe(topic, lambda topic, message: received.append(topic))
        return received

    def test_ingest(self, engine, repository, published):
        sensor = repository.get("S1")
        repository.delete_on_lock.add("S1")

        with pytest.raises(NotFoundError):
            engine.ingest_reading("S1", 5, "%", "moisture")

        assert sensor.readings.size() == 0
        assert sensor.alerts == []
        assert published == []

    def test_update_status(self, engine, repository, published):
        sensor = repository.get("S1")
        repository.delete_on_lock.add("S1")

        with pytest.raises(NotFoundError):
            engine.update_sensor_status("S1", {"battery_level": 5})

        assert sensor.battery_level == 100
        assert sensor.alerts == []
        assert published == []

    def test_resolve_alert(self, engine, repository):
        engine.ingest_reading("S1", 5, "%", "moisture")
        sensor = repository.get("S1")
        repository.delete_on_lock.add("S1")

        with pytest.raises(NotFoundError):
            engine.resolve_alert("S1", 0)

        assert sensor.alerts[0].resolved is False
