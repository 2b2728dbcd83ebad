import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Trade',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('initiator_gives', models.JSONField(default=dict, help_text='Assets moving from the initiator to the partner')),
                ('initiator_receives', models.JSONField(default=dict, help_text='Assets moving from the partner to the initiator')),
                ('status', models.CharField(choices=[('proposed', 'Proposed'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('countered', 'Countered'), ('cancelled', 'Cancelled'), ('expired', 'Expired'), ('vetoed', 'Vetoed'), ('executed', 'Executed')], default='proposed', max_length=20)),
                ('veto_votes', models.PositiveIntegerField(default=0)),
                ('commissioner_override', models.BooleanField(default=False)),
                ('override_reason', models.TextField(blank=True)),
                ('note', models.TextField(blank=True)),
                ('reject_reason', models.TextField(blank=True)),
                ('proposed_at', models.DateTimeField()),
                ('expires_at', models.DateTimeField()),
                ('review_ends_at', models.DateTimeField(blank=True, null=True)),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('executed_at', models.DateTimeField(blank=True, null=True)),
                ('reminded_at', models.DateTimeField(blank=True, null=True)),
                ('execution_failed_at', models.DateTimeField(blank=True, help_text='Last time execution was aborted because assets were no longer owned', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('initiator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='initiated_trades', to='core.team')),
                ('initiator_user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='initiated_trades', to=settings.AUTH_USER_MODEL)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='trades', to='core.league')),
                ('parent', models.ForeignKey(blank=True, help_text='The trade this one counters', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='counter_offers', to='trade.trade')),
                ('partner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offered_trades', to='core.team')),
            ],
            options={
                'ordering': ('-proposed_at',),
                'indexes': [
                    models.Index(fields=['status', 'expires_at'], name='trade_status_expiry_idx'),
                    models.Index(fields=['status', 'review_ends_at'], name='trade_status_review_idx'),
                    models.Index(fields=['league', 'status'], name='trade_league_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TradeEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('proposed', 'Proposed'), ('accepted', 'Accepted'), ('review_started', 'Review Started'), ('rejected', 'Rejected'), ('countered', 'Countered'), ('cancelled', 'Cancelled'), ('expired', 'Expired'), ('expiring_soon', 'Expiring Soon'), ('vote_cast', 'Vote Cast'), ('vetoed', 'Vetoed'), ('executed', 'Executed'), ('execution_failed', 'Execution Failed'), ('overridden', 'Overridden')], max_length=30)),
                ('recipients', models.JSONField(default=list, help_text='Ids of the users to notify')),
                ('message', models.TextField(blank=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField()),
                ('dispatched_at', models.DateTimeField(blank=True, null=True)),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trade_events', to=settings.AUTH_USER_MODEL)),
                ('trade', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='trade.trade')),
            ],
            options={
                'ordering': ('created_at', 'pk'),
                'indexes': [
                    models.Index(fields=['trade', 'created_at'], name='trade_event_trade_date_idx'),
                    models.Index(fields=['dispatched_at'], name='trade_event_dispatch_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TradeVote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vote_type', models.CharField(choices=[('approve', 'Approve'), ('veto', 'Veto')], max_length=10)),
                ('reason', models.TextField(blank=True)),
                ('cast_at', models.DateTimeField()),
                ('team', models.ForeignKey(blank=True, help_text='Team of the voter, empty for members without a team', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trade_votes', to='core.team')),
                ('trade', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='votes', to='trade.trade')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='trade_votes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ('cast_at', 'pk'),
                'indexes': [models.Index(fields=['trade', 'vote_type'], name='trade_vote_type_idx')],
                'constraints': [models.UniqueConstraint(fields=('trade', 'user'), name='trade_vote_once_per_user')],
            },
        ),
    ]
