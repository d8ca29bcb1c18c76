from time import perf_counter

from cursor import PaginatedCursor
from lazy import LazySequence
from utils import FlakyPagedResource, InMemoryPagedResource, compute_stats, sample_students, setup_logging, traverse

setup_logging("WARNING")
students = sample_students(12)

print("\n--- Demo: mixed forward/backward walk over a flaky API ---")
# pages of 5, 5, 2; page 1 times out twice before answering
resource = FlakyPagedResource(InMemoryPagedResource(students, page_size=5), failures={1: 2})
cursor = PaginatedCursor(resource, retries=3)

pattern = ["next", "next", "reverse", "next", "reverse", "reverse"] * 2
t0 = perf_counter()
seen = traverse(cursor, pattern)
t1 = perf_counter()
for direction, student in zip(pattern, seen):
    print(f"  {direction:>7}: {student.student_id} {student.name}")
print(f"Walked {len(seen)} records in {t1 - t0:.4f}s; timeouts absorbed: {resource.timeouts}")
print(f"Fetch metrics: {cursor.metrics.to_dict()}\n")

print("--- Demo: laziness (only the pages needed are fetched) ---")
roster = InMemoryPagedResource(students, page_size=5)
top = (
    LazySequence(PaginatedCursor(roster))
    .filter(lambda s: s.mark >= 60)
    .map(lambda s: f"{s.name} ({s.mark})")
    .take(2)
    .to_list()
)
print(f"First two students with mark >= 60: {top}")
print(f"Pages fetched: {roster.fetches}\n")

print("--- Demo: statistics over a full traversal ---")
stats = compute_stats(PaginatedCursor(InMemoryPagedResource(students, page_size=5)))
print(f"count={stats['count']} passed={stats['passed']} mean={stats['mean_mark']} best={stats['best_student'].name}")
