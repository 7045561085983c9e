import unittest

from rollup_core import (
    AggregationEngine, NodeNotFoundError, NodeState, Phase, Point,
    TreeDiffRenderer, project,
)
from rollup_core.renderer import (
    GLYPH_COLLAPSED, GLYPH_EXPANDED, STATE_COLORS,
    ease_cubic_in_out, format_label, link_path,
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def quarter_tree():
    return AggregationEngine.from_input({
        "name": "Root",
        "children": [{"name": "Q1", "children": [
            {"name": "Jan", "value": 100}, {"name": "Feb", "value": 50},
        ]}],
    })


class TestVisualEncoding(unittest.TestCase):

    def test_label_rounds_to_one_decimal(self):
        self.assertEqual(format_label("Q1", 298.4), "Q1: 298.4")
        self.assertEqual(format_label("Q1", 10), "Q1: 10.0")
        self.assertEqual(format_label("Q1", -2.26), "Q1: -2.3")
        self.assertEqual(format_label("Q1", -0.04), "Q1: 0.0")

    def test_colors_are_distinct_per_state(self):
        self.assertEqual(len(set(STATE_COLORS.values())), 3)
        self.assertEqual(set(STATE_COLORS), set(NodeState))

    def test_easing_endpoints(self):
        self.assertEqual(ease_cubic_in_out(0), 0)
        self.assertEqual(ease_cubic_in_out(0.5), 0.5)
        self.assertEqual(ease_cubic_in_out(1), 1)
        self.assertEqual(ease_cubic_in_out(2), 1)

    def test_link_path_is_horizontal_curve(self):
        self.assertEqual(
            link_path(Point(0, 0), Point(10, 20)),
            "M0.00,0.00C5.00,0.00 5.00,20.00 10.00,20.00",
        )


class TestTreeDiffRenderer(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.engine = quarter_tree()
        self.root = self.engine.get_root()
        self.q1 = self.root.children[0]
        self.jan, self.feb = self.q1.children
        self.renderer = TreeDiffRenderer(800, 600, duration=1.0, clock=self.clock)

    def render(self):
        return self.renderer.render(project(self.root))

    def test_first_render_enters_without_animation(self):
        transition = self.render()
        self.assertEqual(len(transition.nodes.entering), 4)
        self.assertTrue(all(m.is_still for m in transition.motions.values()))
        frame = self.renderer.frame()
        self.assertTrue(frame.done)
        self.assertTrue(all(n.opacity == 1.0 for n in frame.nodes))
        self.assertEqual(self.renderer.previous_layout, transition.target_positions())

    def test_rendering_twice_is_a_noop_animation(self):
        self.render()
        transition = self.render()
        self.assertEqual(transition.nodes.entering, ())
        self.assertEqual(transition.nodes.exiting, ())
        self.assertEqual(len(transition.nodes.updating), 4)
        self.assertEqual(transition.edges.entering, ())
        self.assertEqual(transition.edges.exiting, ())
        for motion in transition.motions.values():
            self.assertEqual(motion.phase, Phase.UPDATE)
            self.assertEqual(motion.start, motion.end)

    def test_collapse_exits_children_into_collapsed_node(self):
        self.render()
        self.engine.toggle_collapse(self.q1.id)
        transition = self.render()

        self.assertEqual(transition.nodes.exiting, (self.jan.id, self.feb.id))
        self.assertEqual(transition.edges.exiting, (self.jan.id, self.feb.id))
        q1_end = transition.motions[self.q1.id].end
        self.assertEqual(transition.motions[self.jan.id].end, q1_end)
        self.assertEqual(transition.motions[self.feb.id].end, q1_end)

        # mid-transition the exiting nodes are still drawn, fading out
        self.clock.now = 0.5
        frame = self.renderer.frame()
        self.assertFalse(frame.done)
        jan = frame.node(self.jan.id)
        self.assertEqual(jan.phase, Phase.EXIT)
        self.assertAlmostEqual(jan.opacity, 0.5)

        # once finished they are gone, and the layout is stored
        self.clock.now = 1.0
        frame = self.renderer.frame()
        self.assertTrue(frame.done)
        self.assertIsNone(frame.node(self.jan.id))
        self.assertEqual(set(self.renderer.previous_layout), {self.root.id, self.q1.id})
        self.assertEqual(frame.node(self.q1.id).glyph, GLYPH_COLLAPSED)

    def test_expand_enters_children_from_parents_previous_position(self):
        self.render()
        self.engine.toggle_collapse(self.q1.id)
        self.render()
        self.clock.now = 2.0
        q1_before = self.renderer.previous_layout[self.q1.id]

        self.engine.toggle_collapse(self.q1.id)
        transition = self.render()
        self.assertEqual(transition.nodes.entering, (self.jan.id, self.feb.id))
        self.assertEqual(transition.motions[self.jan.id].start, q1_before)
        self.assertEqual(transition.opacities[self.jan.id], (0.0, 1.0))

    def test_render_mid_transition_starts_from_current_positions(self):
        self.render()
        self.engine.toggle_collapse(self.q1.id)
        first = self.render()

        self.clock.now = 0.5
        mid = first.positions_at(0.5)
        self.assertNotEqual(mid[self.jan.id], first.motions[self.jan.id].start)

        self.engine.toggle_collapse(self.q1.id)
        second = self.render()
        self.assertIs(self.renderer.transition, second)
        self.assertEqual(second.nodes.entering, ())
        for key in (self.jan.id, self.feb.id, self.q1.id):
            self.assertEqual(second.motions[key].phase, Phase.UPDATE)
            self.assertEqual(second.motions[key].start, mid[key])
        self.assertAlmostEqual(second.opacities[self.jan.id][0], 0.5)

    def test_frame_encodes_state_and_totals(self):
        self.engine.set_state(self.jan.id, NodeState.EXCLUDED)
        self.engine.set_state(self.feb.id, NodeState.INVERTED)
        self.render()
        frame = self.renderer.frame()

        root = frame.node(self.root.id)
        self.assertEqual(root.label, "Root: -50.0")
        self.assertEqual(root.glyph, GLYPH_EXPANDED)

        jan = frame.node(self.jan.id)
        self.assertEqual(jan.label, "Jan: 0.0")
        self.assertEqual(jan.color, STATE_COLORS[NodeState.EXCLUDED])
        self.assertEqual(jan.text_decoration, "line-through")
        self.assertIsNone(jan.glyph)

        feb = frame.node(self.feb.id)
        self.assertEqual(feb.color, STATE_COLORS[NodeState.INVERTED])
        self.assertEqual(feb.text_decoration, "none")

        self.assertEqual({link.id for link in frame.links},
                         {self.q1.id, self.jan.id, self.feb.id})
        link = next(link for link in frame.links if link.id == self.jan.id)
        self.assertEqual(link.source, Point(frame.node(self.q1.id).x, frame.node(self.q1.id).y))
        self.assertEqual(link.target, Point(jan.x, jan.y))

    def test_identity_stable_across_renders(self):
        ids = [n.id for n in self.engine.iter_nodes()]
        for _ in range(3):
            self.engine.toggle_collapse(self.q1.id)
            self.render()
            self.clock.now += 5
        self.assertEqual([n.id for n in self.engine.iter_nodes()], ids)
        self.assertEqual(set(self.renderer.previous_layout), {self.root.id, self.q1.id})

    def test_partial_nodes_degrade_gracefully(self):
        self.renderer.render({"name": "Loose", "children": [{"name": "kid"}, {}]})
        frame = self.renderer.frame()
        labels = sorted(n.label for n in frame.nodes)
        self.assertEqual(labels, [": 0.0", "Loose: 0.0", "kid: 0.0"])
        self.assertEqual({n.id for n in frame.nodes}, {"root/0", "root/0/0", "root/0/1"})

    def test_render_none_exits_everything(self):
        self.render()
        transition = self.renderer.render(None)
        self.assertEqual(len(transition.nodes.exiting), 4)
        self.clock.now = 1.0
        self.assertEqual(self.renderer.frame().nodes, [])
        self.assertEqual(self.renderer.previous_layout, {})

    def test_reset_forgets_layout(self):
        self.render()
        self.renderer.reset()
        transition = self.render()
        self.assertEqual(len(transition.nodes.entering), 4)

    def test_click_handlers_receive_node_data(self):
        self.render()
        primary, secondary = [], []
        self.renderer.on_primary_click(lambda node, event: primary.append((node, event)))
        self.renderer.on_secondary_click(lambda node, event: secondary.append((node, event)))

        self.renderer.primary_click(self.q1.id)
        self.renderer.secondary_click(self.jan.id, 120, 45)

        node, event = primary[0]
        self.assertIs(node, self.q1)
        self.assertEqual(event.button, "primary")
        node, event = secondary[0]
        self.assertIs(node, self.jan)
        self.assertEqual((event.x, event.y), (120, 45))

        with self.assertRaises(NodeNotFoundError):
            self.renderer.primary_click("missing")


if __name__ == "__main__":
    unittest.main()
