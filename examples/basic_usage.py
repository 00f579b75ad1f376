"""
Basic Usage Example
Find the repeating comment blocks of a small page
"""

from dom_cores import CoreConfig, find_cores

COMMENT = """
<div class="comment">
  <img class="avatar">
  <div class="body"><a>{user}</a><time>{age}</time><p>{text}</p>{extra}</div>
</div>
"""

HTML = "<html><body><main>{}</main></body></html>".format("".join(
    COMMENT.format(user=f"user{i}", age=f"{i}h", text="Nice post!",
                   extra="<em>edited</em>" if i == 2 else "")
    for i in range(6)
))


def main():
    result = find_cores(HTML, CoreConfig(min_group_size=4, support_threshold=0.8))

    print(f"\n✅ Flagged {len(result.flags)} core nodes")
    print(f"⏱️  Time: {result.execution_time:.3f}s")

    for summary in result.summaries:
        print(f"\n📊 {summary.signature}")
        print(f"   Members: {summary.member_count}")
        print(f"   Reference: #{summary.reference_index} {summary.reference_label} "
              f"({summary.reference_subtree_count} nodes)")
        print(f"   Newly flagged: {summary.newly_flagged}")

    # The optional <em> badge appears once, so it never becomes core
    edited = result.root.find_all('em')
    print(f"\n'edited' badges flagged: {sum(1 for n in edited if n in result.flags)}")


if __name__ == '__main__':
    main()
