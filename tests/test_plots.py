from __future__ import annotations

import unittest

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from chronosync.engine import compute_sync
from chronosync.models import QuizResponses
from chronosync.plots import plot_learning_timeline
from chronosync.quiz import homework_window, school_window

QUIZ = QuizResponses(
    natural_wake="After 10 AM",
    focus_time="Evening",
    test_time="Evening",
    school_start="Before 7:30 AM",
    homework_time="Late at night",
)


class PlotTests(unittest.TestCase):
    def tearDown(self):
        plt.close("all")

    def test_timeline_plot(self):
        res = compute_sync(QUIZ)
        fig = plot_learning_timeline(res, school=school_window(QUIZ), study=homework_window(QUIZ))
        ax = fig.axes[0]
        self.assertEqual(ax.get_xlim(), (0.0, 24.0))
        line = ax.get_lines()[0]
        self.assertEqual(len(line.get_ydata()), 96)
        labels = ax.get_legend_handles_labels()[1]
        self.assertIn("School", labels)
        self.assertIn("Study", labels)
        self.assertIn("Peak", labels)

    def test_draws_on_given_axes(self):
        fig, ax = plt.subplots()
        out = plot_learning_timeline(compute_sync(QUIZ), title="mine", ax=ax)
        self.assertIs(out, fig)
        self.assertEqual(ax.get_title(), "mine")


if __name__ == "__main__":
    unittest.main()
