import unittest

from rollup_core import AggregationEngine, TreeDiffRenderer, project
from rollup_backend.scheduler import FrameScheduler


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestFrameScheduler(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.engine = AggregationEngine.from_input({
            "name": "Root",
            "children": [{"name": "Q1", "children": [{"name": "Jan", "value": 1}]}],
        })
        self.q1 = self.engine.get_root().children[0]
        self.renderer = TreeDiffRenderer(400, 300, duration=1.0, clock=self.clock)
        self.renderer.render(project(self.engine.get_root()))
        self.frames = []

    async def test_plays_until_done(self):
        async def sink(frame):
            self.frames.append(frame)
            self.clock.now += 0.25

        scheduler = FrameScheduler(self.renderer, sink, interval=0)
        self.engine.toggle_collapse(self.q1.id)
        transition = self.renderer.render(project(self.engine.get_root()))

        sent = await scheduler.play(transition)
        self.assertEqual(sent, 5)
        self.assertEqual([f.progress for f in self.frames], [0, 0.25, 0.5, 0.75, 1.0])
        self.assertTrue(self.frames[-1].done)
        self.assertFalse(any(f.done for f in self.frames[:-1]))

    async def test_stops_when_superseded(self):
        async def sink(frame):
            self.frames.append(frame)
            self.clock.now += 0.25
            if len(self.frames) == 2:
                self.engine.toggle_collapse(self.q1.id)
                self.renderer.render(project(self.engine.get_root()))

        scheduler = FrameScheduler(self.renderer, sink, interval=0)
        self.engine.toggle_collapse(self.q1.id)
        transition = self.renderer.render(project(self.engine.get_root()))

        sent = await scheduler.play(transition)
        self.assertEqual(sent, 2)
        self.assertIsNot(self.renderer.transition, transition)

    async def test_start_and_stop(self):
        async def sink(frame):
            self.frames.append(frame)

        scheduler = FrameScheduler(self.renderer, sink, interval=0)
        self.engine.toggle_collapse(self.q1.id)
        transition = self.renderer.render(project(self.engine.get_root()))

        task = scheduler.start(transition)
        self.assertTrue(scheduler.running)
        await scheduler.stop()
        self.assertTrue(task.done())
        self.assertFalse(scheduler.running)


if __name__ == "__main__":
    unittest.main()
